"""
starbknd errors

Every error raised by the runtime carries the HTTP status the server answers with.
"""


class BkndError(Exception):
    """Base exception for runtime errors"""
    status_code = 500


class SchemaError(BkndError):
    """Raised when the data schema cannot be built or synced"""
    pass


class UnknownEntityError(BkndError):
    """Raised when an entity is not part of the schema"""
    status_code = 404

    def __init__(self, entity: str):
        super().__init__(f'Entity "{entity}" not found')
        self.entity = entity


class RecordNotFoundError(BkndError):
    """Raised when a record id does not exist"""
    status_code = 404

    def __init__(self, entity: str, record_id):
        super().__init__(f'Record {record_id} not found in "{entity}"')
        self.entity = entity
        self.record_id = record_id


class DataValidationError(BkndError):
    """Raised when a payload does not match the entity fields"""
    status_code = 400


class PermissionDeniedError(BkndError):
    """Raised when the guard refuses a permission"""
    status_code = 403

    def __init__(self, permission: str):
        super().__init__(f'Permission "{permission}" denied')
        self.permission = permission


class PayloadTooLargeError(BkndError):
    """Raised when an upload exceeds the media body limit"""
    status_code = 413


class MediaError(BkndError):
    """Raised when media is disabled or a file does not exist"""
    status_code = 404


class DatabaseError(BkndError):
    """Raised when the database rejects a query"""
    pass
