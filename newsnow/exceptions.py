class NewsNowError(Exception):
    pass


class ConfigurationError(NewsNowError):
    pass


class CacheError(NewsNowError):
    pass


class SchemaInitError(CacheError):
    pass


class WriteError(CacheError):
    pass


class ReadError(CacheError):
    pass


class DeleteError(CacheError):
    pass


class UserNotFoundError(NewsNowError):
    pass


class SourceNotFoundError(NewsNowError):
    pass


class FetcherNotFoundError(SourceNotFoundError):
    pass


class FetchError(NewsNowError):
    pass
