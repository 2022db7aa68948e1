from .deps import state, get_state, init_state, AppState
from .status import router as status_router
from .chat import router as chat_router
from .notify import router as notify_router
from .roster import router as roster_router
from .appointments import router as appointments_router

__all__ = [

    'state',
    'get_state',
    'init_state',
    'AppState',
    'status_router',
    'chat_router',
    'notify_router',
    'roster_router',
    'appointments_router',
]
