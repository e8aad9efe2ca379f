"""HTTP route modules, each exposing an ``APIRouter`` named ``router``."""
