"""
Webhook签名校验与通话平台令牌
"""

import hmac
import hashlib
from datetime import datetime, timedelta, timezone
from typing import Union

import jwt

# 令牌有效期
USER_TOKEN_TTL = timedelta(hours=1)
SERVER_TOKEN_TTL = timedelta(minutes=5)
# 签发时间回拨，容忍时钟偏差
CLOCK_SKEW = timedelta(seconds=60)


def compute_signature(body: Union[bytes, str], secret: str) -> str:
    """计算请求体的HMAC-SHA256十六进制签名"""
    if isinstance(body, str):
        body = body.encode("utf-8")
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_signature(body: Union[bytes, str], signature: str, secret: str) -> bool:
    """
    校验Webhook签名

    必须使用原始请求体（不能重新序列化）。任何异常输入都返回False。

    Args:
        body: 原始请求体
        signature: x-signature请求头的值
        secret: 共享密钥

    Returns:
        bool: 签名是否匹配
    """
    if not signature or not secret:
        return False

    try:
        expected = compute_signature(body, secret)
        return hmac.compare_digest(expected.encode("ascii"), signature.encode("ascii"))
    except (UnicodeError, TypeError):
        return False


def create_call_token(
    user_id: str,
    api_key: str,
    secret: str,
    ttl: timedelta = USER_TOKEN_TTL,
    backdate: timedelta = None
) -> str:
    """
    生成通话平台的HS256令牌

    Args:
        user_id: 令牌代表的身份
        api_key: 公开API Key，写入kid头
        secret: 服务端密钥
        ttl: 有效期
        backdate: 签发时间回拨量

    Returns:
        str: JWT
    """
    now = datetime.now(timezone.utc)
    payload = {
        "user_id": user_id,
        "exp": int((now + ttl).timestamp()),
    }
    if backdate is not None:
        payload["iat"] = int((now - backdate).timestamp())

    return jwt.encode(payload, secret, algorithm="HS256", headers={"kid": api_key})


def create_user_token(user_id: str, api_key: str, secret: str) -> str:
    """代理加入通话使用的用户令牌（1小时，iat回拨60秒）"""
    return create_call_token(user_id, api_key, secret, USER_TOKEN_TTL, CLOCK_SKEW)


def create_server_token(api_key: str, secret: str) -> str:
    """服务端操作使用的短期令牌（5分钟）"""
    return create_call_token("server", api_key, secret, SERVER_TOKEN_TTL)
