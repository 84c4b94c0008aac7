from fosdecisions.utils.clients.http_client import USER_AGENT, HttpFetcher

__all__ = ["USER_AGENT", "HttpFetcher"]
