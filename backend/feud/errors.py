"""Error taxonomy shared by the session layer, the state machine and the
answer-check orchestrator.

Every error carries a stable ``code`` and a user-facing ``message`` so that
socket and HTTP handlers can turn it into a reply without inspecting types.
"""


class FeudError(Exception):
    code = 'error'
    message = 'Something went wrong'

    def __init__(self, message=None):
        super().__init__(message or self.message)
        if message:
            self.message = message

    def to_dict(self):
        return {'code': self.code, 'message': self.message}


class RoomNotFound(FeudError):
    code = 'room_not_found'
    message = 'Room not found'


class InvalidCredentials(FeudError):
    code = 'invalid_credentials'
    message = 'Invalid password'


class HostConflict(FeudError):
    code = 'host_conflict'
    message = 'Another host is already connected to this room'


class Unauthorized(FeudError):
    code = 'unauthorized'
    message = 'Not allowed'


class JudgeUnavailable(FeudError):
    code = 'judge_unavailable'
    message = 'Answer judge is unavailable'


class ValidationError(FeudError):
    code = 'validation_error'
    message = 'Invalid request'
