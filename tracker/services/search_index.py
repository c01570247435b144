from django.conf import settings
import requests
import structlog

logger = structlog.get_logger()

REQUEST_TIMEOUT_SECONDS = 5


def forum_post_record(post) -> dict:
    return {
        "objectID": str(post.post_id),
        "title": post.title or "",
        "content": post.content or "",
        "category": post.category or "",
        "userDisplayName": post.user_display_name or "",
        "userId": post.user_id or "",
        "createdAt": post.created_at.isoformat() if post.created_at else "",
    }


class SearchIndexClient:
    """
    Minimal client for an Algolia-compatible REST index. Every call is
    fire-and-forget: transport errors are logged and reported as False.
    """

    def __init__(self, app_id, api_key, index_name, session=None):
        self.app_id = app_id
        self.api_key = api_key
        self.index_name = index_name
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls):
        app_id = getattr(settings, "SEARCH_INDEX_APP_ID", "")
        api_key = getattr(settings, "SEARCH_INDEX_API_KEY", "")
        if not app_id or not api_key:
            return None
        return cls(app_id, api_key, getattr(settings, "SEARCH_INDEX_NAME", "forum_posts"))

    def _url(self, object_id):
        return f"https://{self.app_id}.algolia.net/1/indexes/{self.index_name}/{object_id}"

    def _headers(self):
        return {
            "X-Algolia-Application-Id": self.app_id,
            "X-Algolia-API-Key": self.api_key,
        }

    def _send(self, method, object_id, **kwargs) -> bool:
        try:
            resp = self.session.request(
                method, self._url(object_id),
                headers=self._headers(), timeout=REQUEST_TIMEOUT_SECONDS, **kwargs
            )
            resp.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("search_index_call_failed",
                method=method,
                index=self.index_name,
                object_id=object_id,
                error=str(exc),
            )
            return False
        logger.info("search_index_synced", method=method, index=self.index_name, object_id=object_id)
        return True

    def upsert(self, record: dict) -> bool:
        return self._send("PUT", record["objectID"], json=record)

    def delete(self, object_id) -> bool:
        return self._send("DELETE", object_id)


def sync_forum_post(post) -> bool:
    client = SearchIndexClient.from_settings()
    if client is None:
        logger.debug("search_index_disabled", object_id=str(post.post_id))
        return False
    return client.upsert(forum_post_record(post))


def remove_forum_post(post_id) -> bool:
    client = SearchIndexClient.from_settings()
    if client is None:
        logger.debug("search_index_disabled", object_id=str(post_id))
        return False
    return client.delete(str(post_id))
