"""
Shared identities and token helpers for the test suite.
"""

from flashvote.core.security import create_access_token

OWNER_ID = "user-owner"
EDITOR_ID = "user-editor"
VIEWER_ID = "user-viewer"
OUTSIDER_ID = "user-outsider"


def auth_headers_for(user_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(data={'sub': user_id})}"}
