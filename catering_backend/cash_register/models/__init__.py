from .register_session import RegisterSession

__all__ = ["RegisterSession"]
