"""
Routes shipped with the framework.

Applications add their own descriptors through ``Server.add_route`` before
the server starts; a descriptor with the same name replaces one of these.
"""

from .core.routing import RouteDescriptor


def default_routes(index, sign_in, sign_out, password_reset, set_password, guest_only):
    return [
        RouteDescriptor('index', '/', ('GET',), index.handle),
        RouteDescriptor(
            'user-sign-in', '/user/sign-in', ('GET', 'POST'), sign_in.handle,
            middlewares=(guest_only,), rate_limit='10 per minute',
        ),
        RouteDescriptor('user-sign-out', '/user/sign-out', ('GET',), sign_out.handle),
        RouteDescriptor(
            'user-password-reset', '/user/password-reset', ('GET', 'POST'), password_reset.handle,
            middlewares=(guest_only,), rate_limit='5 per minute',
        ),
        RouteDescriptor('user-set-password', '/user/set-password/:token', ('GET', 'POST'), set_password.handle),
    ]
