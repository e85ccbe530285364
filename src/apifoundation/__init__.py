"""apifoundation -- groundwork for API clients that need an expiring access token.

The package obtains a token from a remote authority through a
vendor-supplied :class:`~apifoundation.auth.CredentialSource`, caches it for
its validity window and refreshes it when missing or forced.  All outbound
HTTP traffic, token requests included, goes through one instrumented
:class:`~apifoundation.client.Http` pipeline.

Typical wiring::

    from apifoundation.auth import AccessToken, access_token_middleware
    from apifoundation.client import Http

    token = AccessToken(MyVendorSource(), app_id="app1", secret="s3cret")
    api = Http().add_middleware(access_token_middleware(token))
    api.get("https://api.example.com/v1/users")

Modules:
    auth: Access token manager, credential source contract, single-flight.
    cache: Cache port and its diskcache / in-memory implementations.
    client: Request pipeline and httpx executor.
    models: Pydantic configuration and data models.
    config: Cache directory and credential source resolution.
    exceptions: Exception hierarchy.
    log: Request logging helpers.
"""

__version__ = "0.1.0"
