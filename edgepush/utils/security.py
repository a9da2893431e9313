"""Secret masking for log lines and remote error bodies."""

import re
import logging
from typing import Any, Dict, Iterable, Optional, Union

# Patterns for detecting credentials that may end up in logs
SECRET_PATTERNS = [
    # Deno Deploy personal access tokens
    (r'ddp_[a-zA-Z0-9]{20,}', r'ddp_***MASKED***'),

    # Bearer tokens (Cloudflare API tokens, Deploy tokens)
    (r'(bearer\s+)([a-zA-Z0-9_.-]{20,})', r'\1***MASKED***'),

    # Token assignments in config dumps and query strings
    (r'(api[_-]?token["\']?\s*[:=]\s*["\']?)([a-zA-Z0-9_.-]{20,})', r'\1***MASKED***'),
    (r'(access[_-]?token["\']?\s*[:=]\s*["\']?)([a-zA-Z0-9_.-]{20,})', r'\1***MASKED***'),

    # Secret key material
    (r'("?(?:key_base64|base64)"?\s*[:=]\s*")([^"]{16,})', r'\1***MASKED***'),
]


class SecretMasker:
    """Masks credentials and registered secret values in text."""

    def __init__(self, additional_patterns: Optional[list] = None):
        self.patterns = SECRET_PATTERNS.copy()
        if additional_patterns:
            self.patterns.extend(additional_patterns)
        self.literals = set()

    def register(self, values: Iterable[str]) -> None:
        """Register literal values (e.g. secret bindings) that must never be logged."""
        for value in values:
            if value and len(value) >= 4:
                self.literals.add(value)

    def mask_string(self, text: str) -> str:
        if not isinstance(text, str):
            return str(text)

        masked_text = text
        # longest first so overlapping secrets are fully replaced
        for literal in sorted(self.literals, key=len, reverse=True):
            masked_text = masked_text.replace(literal, '***MASKED***')
        for pattern, replacement in self.patterns:
            masked_text = re.sub(pattern, replacement, masked_text, flags=re.IGNORECASE)

        return masked_text

    def mask_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        if not isinstance(data, dict):
            return data

        masked_data = {}
        for key, value in data.items():
            if isinstance(value, str):
                masked_data[key] = self.mask_string(value)
            elif isinstance(value, dict):
                masked_data[key] = self.mask_dict(value)
            elif isinstance(value, list):
                masked_data[key] = [self.mask_string(item) if isinstance(item, str) else item for item in value]
            else:
                masked_data[key] = value

        return masked_data

    def mask_headers(self, headers: Dict[str, str]) -> Dict[str, str]:
        """Credential headers are replaced outright, others pattern-masked."""
        sensitive_headers = {'authorization', 'x-auth-key', 'x-auth-email', 'cookie'}

        masked_headers = {}
        for key, value in headers.items():
            if key.lower() in sensitive_headers:
                masked_headers[key] = '***MASKED***'
            else:
                masked_headers[key] = self.mask_string(value)

        return masked_headers


# Global instance for easy access
default_masker = SecretMasker()


def mask_secrets(data: Union[str, Dict[str, Any]]) -> Union[str, Dict[str, Any]]:
    """
    Convenience function to mask secrets in data.

    Args:
        data: String or dictionary that may contain secrets

    Returns:
        Data with secrets masked
    """
    if isinstance(data, str):
        return default_masker.mask_string(data)
    elif isinstance(data, dict):
        return default_masker.mask_dict(data)
    else:
        return data


class SecureLogger:
    """Logger wrapper that masks secrets before anything is emitted."""

    def __init__(self, logger: logging.Logger, masker: Optional[SecretMasker] = None):
        self.logger = logger
        self.masker = masker or default_masker

    def _safe_format(self, msg: str, *args) -> str:
        try:
            if args:
                safe_args = tuple(self.masker.mask_string(str(arg)) for arg in args)
                formatted_msg = msg % safe_args
            else:
                formatted_msg = msg
            return self.masker.mask_string(formatted_msg)
        except (TypeError, ValueError):
            return self.masker.mask_string(str(msg))

    def isEnabledFor(self, level: int) -> bool:
        return self.logger.isEnabledFor(level)

    def debug(self, msg: str, *args, **kwargs):
        self.logger.debug(self._safe_format(msg, *args), **kwargs)

    def info(self, msg: str, *args, **kwargs):
        self.logger.info(self._safe_format(msg, *args), **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        self.logger.warning(self._safe_format(msg, *args), **kwargs)

    def error(self, msg: str, *args, **kwargs):
        self.logger.error(self._safe_format(msg, *args), **kwargs)


def get_secure_logger(name: str) -> SecureLogger:
    """
    Get a secure logger instance.

    Args:
        name: Logger name

    Returns:
        SecureLogger instance
    """
    return SecureLogger(logging.getLogger(name))
