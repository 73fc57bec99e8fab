"""Low-level network helpers shared by the site backends.

The utils layer depends only on third-party libraries (``aiohttp``). It has
no imports from [snapweb.core][snapweb.core] or
[snapweb.sites][snapweb.sites].

Attributes:
    http: Bounded HTTP requests that refuse oversized bodies.

Examples:
    ```python
    from snapweb.utils.http import request_bounded
    ```
"""
