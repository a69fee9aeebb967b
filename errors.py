"""Error taxonomy shared by the registry, the store and the HTTP layer."""


class TrackerError(Exception):
    status_code = 500
    code = 'error'
    default_message = 'Request failed'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self):
        return {'error': self.message}


class InvalidCredentials(TrackerError):
    status_code = 401
    code = 'auth_invalid'
    default_message = 'Invalid website_id or api_key'


class DuplicateTenant(TrackerError):
    status_code = 400
    code = 'duplicate_tenant'
    default_message = 'Website already registered'


class MalformedInput(TrackerError):
    status_code = 400
    code = 'validation'
    default_message = 'Malformed request'


class StorageFailure(TrackerError):
    status_code = 500
    code = 'storage'
    default_message = 'Database error'
