##########################################################################################
#
# Script name: errors.py
#
# Description: Exception taxonomy shared by the ingestion and generation pipeline.
#
##########################################################################################


# ****************************************************************************************
# Exceptions
# ****************************************************************************************

class Error(Exception):
    '''
    Base class for exceptions in this package.
    '''
    pass


class TransportFailure(Error):
    '''
    A feed or the generation service was unreachable or answered with a non-success status.
    '''
    def __init__(self, url: str, status: int | None = None, reason: str = ''):
        self.url = url
        self.status = status
        if status is not None:
            self.message = f'Failed to fetch URL: {url} (status {status})'
        else:
            self.message = f'Failed to fetch URL: {url}'
        if reason:
            self.message = f'{self.message}: {reason}'
        super().__init__(self.message)


class ParseFailure(Error):
    '''
    A feed body could not be parsed into entries.
    '''
    pass


class StoreFailure(Error):
    '''
    The key-value store rejected a read or a write.
    '''
    def __init__(self, key: str, reason: str = ''):
        self.key = key
        self.message = f'Store operation failed for key {key}'
        if reason:
            self.message = f'{self.message}: {reason}'
        super().__init__(self.message)


class GenerationFailure(Error):
    '''
    The text-generation service failed for one item.
    '''
    pass


class ItemNotFound(Error):
    '''
    No ranked item matches the requested slug or identity.
    '''
    def __init__(self, slug: str):
        self.slug = slug
        self.message = f'No item matches {slug!r}'
        super().__init__(self.message)
