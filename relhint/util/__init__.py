"""Contains utilities that are not specific to relhint's domain of optimizer hints and query plans."""

import lazy_loader

__getattr__, __dir__, __all__ = lazy_loader.attach_stub(
    __name__,
    __file__,
)
