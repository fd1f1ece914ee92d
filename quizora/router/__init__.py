from quizora.router.api.auth import router as auth_router
from quizora.router.api.users import router as users_router
from quizora.router.api.modules import router as modules_router
from quizora.router.api.questions import router as questions_router
from quizora.router.api.quizzes import router as quizzes_router
from quizora.router.api.windows import router as windows_router

__all__ = [
    "auth_router",
    "users_router",
    "modules_router",
    "questions_router",
    "quizzes_router",
    "windows_router",
]
