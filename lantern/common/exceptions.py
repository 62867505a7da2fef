class LanternException(Exception):
    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(LanternException):
    pass


class MethodNotSupportedError(ConfigurationError):
    def __init__(self, method: str, route_name: str):
        message = f"method {method} is not supported (route '{route_name}')"
        details = {'method': method, 'route': route_name}
        super().__init__(message, details)


class ServerStateError(ConfigurationError):
    def __init__(self, action: str, state: str):
        message = f"cannot {action} server while it is {state}"
        details = {'action': action, 'state': state}
        super().__init__(message, details)


class RouteNotFoundError(LanternException):
    def __init__(self, route_name: str):
        message = f"route with name {route_name} does not exist"
        details = {'route': route_name}
        super().__init__(message, details)


class UnresolvedRouteError(LanternException):
    def __init__(self, route_name: str, segment: str):
        message = f"route {route_name} requires parameter '{segment}'"
        details = {'route': route_name, 'segment': segment}
        super().__init__(message, details)


class HandlerError(LanternException):
    def __init__(self, route_name: str, original_error: Exception):
        message = f"handler for route {route_name} failed: {original_error}"
        details = {
            'route': route_name,
            'error_type': type(original_error).__name__,
        }
        super().__init__(message, details)
        self.original_error = original_error


class NotFoundError(LanternException):
    def __init__(self, path: str):
        message = f"no route matches {path}"
        super().__init__(message, {'path': path})


class MailError(LanternException):
    def __init__(self, driver: str, original_error: Exception = None):
        message = f"failed to send mail with driver {driver}"
        details = {
            'driver': driver,
            'original_error': str(original_error) if original_error else None
        }
        super().__init__(message, details)
