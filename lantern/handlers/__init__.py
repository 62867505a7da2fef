from .index import IndexHandler
from .user import PasswordResetHandler, SetPasswordHandler, SignInHandler, SignOutHandler
