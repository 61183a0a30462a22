import json
import logging
from dataclasses import dataclass
from typing import Dict, Optional

import requests

logger = logging.getLogger(__name__)


OPENAI_URL = "https://api.openai.com/v1/chat/completions"
GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


def extract_json_object(text: Optional[str]) -> Optional[Dict]:
    if not text:
        return None
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end <= start:
        return None
    try:
        obj = json.loads(text[start : end + 1])
    except ValueError:
        return None
    return obj if isinstance(obj, dict) else None


@dataclass(frozen=True)
class OpenAIClient:
    api_key: str
    model: str
    timeout_seconds: int

    name = "openai"

    def complete_json(self, system: str, user: str, max_tokens: int = 300) -> Optional[Dict]:
        if not self.api_key:
            return None
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "temperature": 0,
            "max_tokens": max_tokens,
            "response_format": {"type": "json_object"},
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            resp = requests.post(OPENAI_URL, headers=headers, json=payload, timeout=self.timeout_seconds)
            if resp.status_code >= 400:
                logger.warning("OpenAI status=%s body=%s", resp.status_code, resp.text[:200])
                return None
            content = resp.json()["choices"][0]["message"]["content"]
        except (requests.RequestException, ValueError, KeyError, IndexError, TypeError) as exc:
            logger.warning("OpenAI request failed: %s", exc)
            return None
        return extract_json_object(content)


@dataclass(frozen=True)
class GeminiClient:
    api_key: str
    model: str
    timeout_seconds: int

    name = "gemini"

    def complete_json(self, system: str, user: str, max_tokens: int = 300) -> Optional[Dict]:
        if not self.api_key:
            return None
        payload = {
            "system_instruction": {"parts": [{"text": system}]},
            "contents": [{"role": "user", "parts": [{"text": user}]}],
            "generationConfig": {
                "temperature": 0,
                "maxOutputTokens": max_tokens,
                "responseMimeType": "application/json",
            },
        }
        try:
            resp = requests.post(
                GEMINI_URL.format(model=self.model),
                params={"key": self.api_key},
                json=payload,
                timeout=self.timeout_seconds,
            )
            if resp.status_code >= 400:
                logger.warning("Gemini status=%s body=%s", resp.status_code, resp.text[:200])
                return None
            candidates = resp.json().get("candidates") or []
            if not candidates:
                return None
            parts = candidates[0].get("content", {}).get("parts", [])
            content = parts[0].get("text", "") if parts else ""
        except (requests.RequestException, ValueError, AttributeError, TypeError) as exc:
            logger.warning("Gemini request failed: %s", exc)
            return None
        return extract_json_object(content)
