"""
목적:
- 검색 요청의 자격 증명(클라이언트 ID + 일회용 코드)과 스코프를 검증한다.

설명:
- 자격 증명 형식은 `<client_id>:<code>`이며, 코드는 클라이언트 시크릿 기반 TOTP다.
- 허용 드리프트(`valid_window`)를 벗어난 과거 구간의 코드는 "만료"로 구분해 거부한다.
- 재사용 차단기가 주입되면 같은 코드는 유효 기간 동안 한 번만 통과한다.
- 필요한 스코프가 없으면 `InsufficientScopeError`(403)를 발생시킨다.

디자인 패턴:
- 게이트키퍼(Gatekeeper).

참조:
- src_py/talent_search/auth/replay.py
- src_py/talent_search/search/engine.py
"""

from __future__ import annotations

import binascii
import hmac
import logging
from datetime import datetime

import pyotp
from pydantic import SecretStr

from talent_search.auth.replay import ReplayGuard
from talent_search.config.models import AuthConfig
from talent_search.contracts.context_models import AuthContext
from talent_search.exceptions import AuthError, ConfigurationError, InsufficientScopeError

logger = logging.getLogger(__name__)


class AuthGate:
    """TOTP 기반 인증 게이트."""

    def __init__(self, config: AuthConfig, replay_guard: ReplayGuard | None = None) -> None:
        self._config = config
        self._replay_guard = replay_guard
        self._totps: dict[str, pyotp.TOTP] = {}

        for client_id, client in config.clients.items():
            totp = pyotp.TOTP(
                client.secret.get_secret_value(),
                digits=config.digits,
                interval=config.interval_sec,
            )
            try:
                totp.at(0)
            except (binascii.Error, ValueError) as exc:
                raise ConfigurationError(
                    f"TOTP 시크릿이 base32 형식이 아닙니다: client_id={client_id}"
                ) from exc
            self._totps[client_id] = totp

    def verify(self, credential: SecretStr | str | None, now: datetime) -> AuthContext:
        """자격 증명을 검증하고 인증 컨텍스트를 반환한다."""
        raw = credential.get_secret_value() if isinstance(credential, SecretStr) else credential
        if not raw:
            raise AuthError("자격 증명이 없습니다")

        client_id, separator, code = raw.strip().partition(":")
        if not separator or not client_id or not code:
            raise AuthError("자격 증명 형식이 잘못되었습니다: expected=<client_id>:<code>")

        totp = self._totps.get(client_id)
        if totp is None or not code.isdigit() or len(code) != self._config.digits:
            logger.info("auth rejected: client_id=%s reason=unknown_client_or_format", client_id)
            raise AuthError("자격 증명이 유효하지 않습니다")

        if not totp.verify(code, for_time=now, valid_window=self._config.valid_window):
            if self._is_expired(totp, code, now):
                logger.info("auth rejected: client_id=%s reason=expired", client_id)
                raise AuthError("일회용 코드가 만료되었습니다")
            logger.info("auth rejected: client_id=%s reason=invalid_code", client_id)
            raise AuthError("자격 증명이 유효하지 않습니다")

        scopes = self._config.clients[client_id].scopes
        required = self._config.required_scope
        if required not in scopes:
            raise InsufficientScopeError(
                f"필요한 스코프가 없습니다: required={required}, client_id={client_id}"
            )

        if self._replay_guard is not None:
            ttl_sec = self._config.interval_sec * (2 * self._config.valid_window + 1)
            if not self._replay_guard.claim(f"{client_id}:{code}", ttl_sec):
                logger.info("auth rejected: client_id=%s reason=replayed", client_id)
                raise AuthError("이미 사용된 일회용 코드입니다")

        return AuthContext(client_id=client_id, scopes=scopes)

    def _is_expired(self, totp: pyotp.TOTP, code: str, now: datetime) -> bool:
        start = self._config.valid_window + 1
        stop = start + self._config.expired_lookback
        for offset in range(start, stop):
            if hmac.compare_digest(totp.at(now, counter_offset=-offset), code):
                return True
        return False
