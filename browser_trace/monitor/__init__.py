from browser_trace.monitor.server import MonitorServer, MonitorSession

__all__ = ['MonitorServer', 'MonitorSession']
