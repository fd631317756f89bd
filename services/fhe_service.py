"""
FHE 服務：佔位用的「加密」

不是真正的同態加密，只是把送出的欄位 JSON 化後做 base64，
再加上 "FHE-" 前綴。可逆，方便 debug
"""
import base64
import json
from typing import Any, Dict

FHE_PREFIX = "FHE-"


def encrypt_profile(preferences: str, encrypted_info: str) -> str:
    """
    把加入表單的欄位編碼成 FHE payload

    範例：
        encrypt_profile("hiking", "secret")
        -> "FHE-" + base64('{"preferences":"hiking","encryptedInfo":"secret"}')
    """
    raw = json.dumps(
        {"preferences": preferences, "encryptedInfo": encrypted_info},
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return FHE_PREFIX + base64.b64encode(raw.encode("utf-8")).decode("ascii")


def decrypt_profile(payload: str) -> Dict[str, Any]:
    """
    encrypt_profile 的反向操作

    異常：
        ValueError: payload 不是 "FHE-" 開頭或內容無法解析
    """
    if not payload.startswith(FHE_PREFIX):
        raise ValueError("Payload is not FHE encoded")

    try:
        raw = base64.b64decode(payload[len(FHE_PREFIX):], validate=True)
        profile = json.loads(raw.decode("utf-8"))
    except (ValueError, UnicodeDecodeError) as e:
        raise ValueError(f"Invalid FHE payload: {e}") from e

    if not isinstance(profile, dict):
        raise ValueError("Invalid FHE payload: expected a JSON object")
    return profile
