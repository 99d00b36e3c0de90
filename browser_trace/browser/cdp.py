"""TargetDriver implementation talking to Chrome over the DevTools Protocol."""

import asyncio
import base64
import logging
from typing import Any, Self

import httpx
from cdp_use import CDPClient
from cdp_use.cdp.page import CaptureScreenshotParameters
from cdp_use.cdp.target import SessionID, TargetID
from pydantic import BaseModel, ConfigDict, PrivateAttr

from browser_trace.assets import helper_library_js
from browser_trace.browser.views import BrowserTraceError, EvaluationError, RemoteObjectRef, TargetInfo, TargetNotFoundError
from browser_trace.tracing.helpers import HELPER_LIBRARY

logger = logging.getLogger(__name__)


def _exception_message(details: dict[str, Any]) -> str:
	exception = details.get('exception') or {}
	return exception.get('description') or details.get('text') or 'Uncaught exception'


class CDPDriver(BaseModel):
	"""Shares one root CDP websocket across all targets, one flattened session per target."""

	model_config = ConfigDict(arbitrary_types_allowed=True, extra='forbid', revalidate_instances='never')

	cdp_url: str

	_client: CDPClient | None = PrivateAttr(default=None)
	_sessions: dict[TargetID, SessionID] = PrivateAttr(default_factory=dict)
	# objectIds of globalThis and the helper library per target, valid until the page navigates
	_handles: dict[TargetID, dict[str, str]] = PrivateAttr(default_factory=dict)
	_attach_lock: asyncio.Lock = PrivateAttr(default_factory=asyncio.Lock)

	def __str__(self) -> str:
		return f'CDPDriver({self.cdp_url})'

	@property
	def client(self) -> CDPClient:
		assert self._client is not None, 'CDP client not initialized - call connect() first'
		return self._client

	async def connect(self) -> Self:
		"""Open the root websocket. HTTP endpoints are resolved through /json/version first."""
		if not self.cdp_url.startswith('ws'):
			url = self.cdp_url.rstrip('/')
			if not url.endswith('/json/version'):
				url = url + '/json/version'
			async with httpx.AsyncClient() as client:
				version_info = await client.get(url)
				self.cdp_url = version_info.json()['webSocketDebuggerUrl']

		logger.debug(f'🌎 Connecting to browser via CDP: {self.cdp_url}')
		self._client = CDPClient(self.cdp_url)
		await self._client.start()
		return self

	async def disconnect(self) -> None:
		self._sessions.clear()
		self._handles.clear()
		if self._client is not None:
			try:
				await self._client.stop()
			except Exception as e:
				logger.debug(f'Ignoring error while closing CDP client: {type(e).__name__}: {e}')
			self._client = None

	async def _session_for(self, target_id: str) -> SessionID:
		async with self._attach_lock:
			if target_id in self._sessions:
				return self._sessions[target_id]
			try:
				result = await self.client.send.Target.attachToTarget(params={'targetId': target_id, 'flatten': True})
			except Exception as e:
				raise TargetNotFoundError(target_id) from e
			session_id = result['sessionId']
			self._sessions[target_id] = session_id
			logger.debug(f'Attached to target 🅣 {target_id[-4:]} (session {session_id[-4:]})')
			return session_id

	def _forget(self, target_id: str) -> None:
		self._sessions.pop(target_id, None)
		self._handles.pop(target_id, None)

	async def list_targets(self) -> list[TargetInfo]:
		result = await self.client.send.Target.getTargets()
		return list(result['targetInfos'])

	async def get_target_info(self, target_id: str) -> TargetInfo:
		try:
			result = await self.client.send.Target.getTargetInfo(params={'targetId': target_id})
		except Exception as e:
			raise TargetNotFoundError(target_id) from e
		return result['targetInfo']

	async def capture_screenshot(self, target_id: str) -> bytes:
		session_id = await self._session_for(target_id)
		params = CaptureScreenshotParameters(format='png', captureBeyondViewport=False)
		try:
			result = await self.client.send.Page.captureScreenshot(params=params, session_id=session_id)
		except Exception:
			self._forget(target_id)
			raise
		if not result or 'data' not in result:
			raise BrowserTraceError('Screenshot result missing data', details={'target_id': target_id})
		return base64.b64decode(result['data'])

	async def _remote_object_id(self, session_id: SessionID, expression: str) -> str:
		result = await self.client.send.Runtime.evaluate(
			params={'expression': expression, 'returnByValue': False}, session_id=session_id
		)
		if 'exceptionDetails' in result:
			raise EvaluationError(_exception_message(result['exceptionDetails']))
		return result['result']['objectId']

	async def _handle(self, target_id: str, session_id: SessionID, name: str, expression: str) -> str:
		handles = self._handles.setdefault(target_id, {})
		if name not in handles:
			handles[name] = await self._remote_object_id(session_id, expression)
		return handles[name]

	async def _call_function(self, target_id: str, session_id: SessionID, script_source: str, arguments: list[Any]) -> dict:
		this_id = await self._handle(target_id, session_id, 'this', 'globalThis')
		library_id = None
		if any(arg is HELPER_LIBRARY for arg in arguments):
			library_id = await self._handle(target_id, session_id, 'library', helper_library_js())

		call_arguments = []
		for arg in arguments:
			if arg is HELPER_LIBRARY:
				call_arguments.append({'objectId': library_id})
			elif isinstance(arg, RemoteObjectRef):
				call_arguments.append({'objectId': arg.object_id})
			else:
				call_arguments.append({'value': arg})

		return await self.client.send.Runtime.callFunctionOn(
			params={
				'functionDeclaration': script_source,
				'objectId': this_id,
				'arguments': call_arguments,
				'returnByValue': True,
				'awaitPromise': True,
				'userGesture': True,
			},
			session_id=session_id,
		)

	async def evaluate(self, target_id: str, script_source: str, arguments: list[Any]) -> Any:
		"""One callFunctionOn round trip once the target's handles are cached.

		Cached handles die with the page's execution context. A call that fails while using
		them is retried once with fresh handles before the session itself is dropped.
		"""
		session_id = await self._session_for(target_id)
		for attempt in range(2):
			reused_handles = target_id in self._handles
			try:
				result = await self._call_function(target_id, session_id, script_source, arguments)
				break
			except EvaluationError:
				raise
			except Exception as e:
				if reused_handles and attempt == 0:
					logger.debug(f'Refreshing handles for target 🅣 {target_id[-4:]}: {type(e).__name__}: {e}')
					self._handles.pop(target_id, None)
					continue
				# the session dies with closed tabs, reattach next time
				self._forget(target_id)
				raise

		if 'exceptionDetails' in result:
			raise EvaluationError(_exception_message(result['exceptionDetails']), details={'target_id': target_id})
		return result['result'].get('value')
