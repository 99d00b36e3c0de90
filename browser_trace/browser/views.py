from typing import Any

from cdp_use.cdp.target.types import TargetInfo
from pydantic import BaseModel, ConfigDict

__all__ = [
	'BrowserTraceError',
	'EvaluationError',
	'RemoteObjectRef',
	'TargetInfo',
	'TargetNotFoundError',
]


class BrowserTraceError(Exception):
	"""Base error for everything raised by browser-trace collaborators."""

	message: str
	details: dict[str, Any] | None = None

	def __init__(self, message: str, details: dict[str, Any] | None = None):
		self.message = message
		self.details = details
		super().__init__(message)

	def __str__(self) -> str:
		if self.details:
			return f'{self.message} ({self.details})'
		return self.message


class TargetNotFoundError(BrowserTraceError):
	"""The target id does not (or no longer) refer to a live browsing context."""

	def __init__(self, target_id: str):
		super().__init__(f'Target {target_id} not found', details={'target_id': target_id})
		self.target_id = target_id


class EvaluationError(BrowserTraceError):
	"""Script evaluation reached the page but threw there."""


class RemoteObjectRef(BaseModel):
	"""Reference to an object living in the page, e.g. an element found by the automation."""

	model_config = ConfigDict(frozen=True, extra='forbid')

	object_id: str
	description: str | None = None

	def __str__(self) -> str:
		return self.description or f'<object {self.object_id[-6:]}>'
