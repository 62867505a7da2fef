from .access import AccessMiddleware, GuestOnlyMiddleware
from .error import ErrorCatchHandler, ErrorMiddleware, NotFoundMiddleware, wants_json
from .security import configure_cors, init_security_headers
from .static import StaticFilesMiddleware
