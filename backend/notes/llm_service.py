import json
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import requests
from django.conf import settings

from . import prompts
from .categories import CATEGORIES, DEFAULT_CATEGORY, normalize_category
from .exceptions import EmbeddingError, GenerationError
from .text_utils import clean_markdown_code_blocks

logger = logging.getLogger(__name__)

GEMINI_DEFAULT_ENDPOINT = "https://generativelanguage.googleapis.com"
UNTITLED_NOTE = "Untitled Note"
MAX_TITLE_LENGTH = 100
ANALYSIS_EXCERPT_CHARS = 2000
TITLE_EXCERPT_CHARS = 500


def normalize_vector(vector: List[float]) -> List[float]:
    """Normalize a vector to unit length for cosine similarity"""
    magnitude = math.sqrt(sum(x * x for x in vector))
    if magnitude == 0:
        return vector
    return [x / magnitude for x in vector]


def clean_title(title: str) -> str:
    title = (title or "").strip().strip("\"'").strip()
    if len(title) > MAX_TITLE_LENGTH:
        title = title[:MAX_TITLE_LENGTH]
    return title or UNTITLED_NOTE


def _excerpt(content: str, max_chars: int) -> str:
    if len(content) > max_chars:
        return content[:max_chars] + "..."
    return content


@dataclass
class NoteAnalysis:
    title: str
    category: str
    summary: str = ""


class LLMService:
    """Service for LLM operations: embeddings and text generation"""

    def __init__(self):
        self.session = requests.Session()

    def _get_embedding_config(self) -> Dict[str, Any]:
        provider = settings.EMBEDDINGS_PROVIDER.lower()
        endpoint_url = settings.EMBEDDINGS_ENDPOINT_URL
        if provider == "gemini" and not endpoint_url:
            endpoint_url = GEMINI_DEFAULT_ENDPOINT
        return {
            'provider': provider,
            'endpoint_url': endpoint_url.rstrip('/'),
            'model': settings.EMBEDDINGS_MODEL,
            'api_key': settings.EMBEDDINGS_API_KEY,
            'timeout': settings.EMBEDDINGS_TIMEOUT,
        }

    def _get_generation_config(self) -> Dict[str, Any]:
        """
        Get generation configuration from settings.

        Empty generation values fall back to the embeddings configuration so a
        single provider can serve both.
        """
        provider = (settings.GENERATION_PROVIDER or settings.EMBEDDINGS_PROVIDER).lower()
        endpoint_url = settings.GENERATION_ENDPOINT_URL or settings.EMBEDDINGS_ENDPOINT_URL
        if provider == "gemini" and not endpoint_url:
            endpoint_url = GEMINI_DEFAULT_ENDPOINT
        return {
            'provider': provider,
            'endpoint_url': endpoint_url.rstrip('/'),
            'model': settings.GENERATION_MODEL or settings.EMBEDDINGS_MODEL,
            'api_key': settings.GENERATION_API_KEY or settings.EMBEDDINGS_API_KEY,
            'temperature': settings.GENERATION_TEMPERATURE,
            'max_tokens': settings.GENERATION_MAX_TOKENS,
            'timeout': settings.GENERATION_TIMEOUT,
        }

    # =========================================================================
    # Text generation
    # =========================================================================

    def generate_text(
        self,
        prompt: str,
        temperature: float = None,
        max_tokens: int = None,
        json_mode: bool = False,
    ) -> Dict[str, Any]:
        """
        Generate text using the configured LLM

        Args:
            prompt: The prompt to send to the LLM
            temperature: Sampling temperature (0.0-1.0), uses config default if None
            max_tokens: Maximum tokens to generate, uses config default if None
            json_mode: Ask the provider for a JSON response where supported

        Returns:
            Dict with 'success', 'text' (generated text), 'error' (if failed)
        """
        try:
            config = self._get_generation_config()
            provider = config['provider']

            if temperature is None:
                temperature = config['temperature']
            if max_tokens is None:
                max_tokens = config['max_tokens']

            if provider == "ollama":
                return self._generate_text_ollama(prompt, temperature, max_tokens, json_mode, config)
            elif provider in ["openai", "openai_compatible"]:
                return self._generate_text_openai(prompt, temperature, max_tokens, config)
            elif provider == "gemini":
                return self._generate_text_gemini(prompt, temperature, max_tokens, json_mode, config)
            else:
                return {
                    "success": False,
                    "error": f"Unsupported provider: {provider}"
                }

        except Exception as e:
            logger.error(f"Failed to generate text: {e}")
            return {"success": False, "error": str(e)}

    def _generate_text_ollama(
        self,
        prompt: str,
        temperature: float,
        max_tokens: int,
        json_mode: bool,
        config: Dict[str, Any]
    ) -> Dict[str, Any]:
        endpoint = f"{config['endpoint_url']}/api/generate"
        model = config['model']

        payload = {
            "model": model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": temperature,
                "num_predict": max_tokens
            }
        }
        if json_mode:
            payload["format"] = "json"

        try:
            response = self.session.post(endpoint, json=payload, timeout=config['timeout'])
            response.raise_for_status()
            data = response.json()

            return {
                "success": True,
                "text": data["response"],
                "model": model
            }

        except Exception as e:
            logger.error(f"Ollama text generation failed: {e}")
            return {"success": False, "error": str(e)}

    def _generate_text_openai(
        self,
        prompt: str,
        temperature: float,
        max_tokens: int,
        config: Dict[str, Any]
    ) -> Dict[str, Any]:
        endpoint = f"{config['endpoint_url']}/v1/chat/completions"
        model = config['model']

        headers = {}
        if config['api_key']:
            headers["Authorization"] = f"Bearer {config['api_key']}"

        try:
            response = self.session.post(
                endpoint,
                json={
                    "model": model,
                    "messages": [
                        {"role": "user", "content": prompt}
                    ],
                    "temperature": temperature,
                    "max_tokens": max_tokens
                },
                headers=headers,
                timeout=config['timeout']
            )
            response.raise_for_status()
            data = response.json()

            return {
                "success": True,
                "text": data["choices"][0]["message"]["content"],
                "model": data.get("model", model)
            }

        except requests.exceptions.HTTPError as e:
            error_detail = ""
            if e.response is not None:
                try:
                    error_detail = e.response.json()
                except ValueError:
                    error_detail = e.response.text
            logger.error(f"OpenAI text generation failed: {e}. Response: {error_detail}")
            return {"success": False, "error": f"{str(e)}. Response: {error_detail}"}
        except Exception as e:
            logger.error(f"OpenAI text generation failed: {e}")
            return {"success": False, "error": str(e)}

    def _generate_text_gemini(
        self,
        prompt: str,
        temperature: float,
        max_tokens: int,
        json_mode: bool,
        config: Dict[str, Any]
    ) -> Dict[str, Any]:
        model = config['model']
        endpoint = f"{config['endpoint_url']}/v1beta/models/{model}:generateContent"

        generation_config = {
            "temperature": temperature,
            "maxOutputTokens": max_tokens,
        }
        if json_mode:
            generation_config["responseMimeType"] = "application/json"

        try:
            response = self.session.post(
                endpoint,
                json={
                    "contents": [{"parts": [{"text": prompt}]}],
                    "generationConfig": generation_config,
                },
                headers={"x-goog-api-key": config['api_key'] or ""},
                timeout=config['timeout']
            )
            response.raise_for_status()
            data = response.json()

            candidates = data.get("candidates") or []
            if not candidates:
                return {"success": False, "error": "No candidates returned"}
            parts = candidates[0].get("content", {}).get("parts", [])
            text = "".join(part.get("text", "") for part in parts).strip()
            if not text:
                return {"success": False, "error": "Empty response"}

            return {"success": True, "text": text, "model": model}

        except Exception as e:
            logger.error(f"Gemini text generation failed: {e}")
            return {"success": False, "error": str(e)}

    def _generate_or_raise(self, prompt: str, json_mode: bool = False) -> str:
        result = self.generate_text(prompt, json_mode=json_mode)
        if not result["success"]:
            raise GenerationError(result["error"])
        return result["text"].strip()

    # =========================================================================
    # Note-level generation helpers
    # =========================================================================

    def generate_answer(self, question: str, context_text: str) -> str:
        """Answer a question using only the supplied note context"""
        prompt = prompts.ANSWER_PROMPT.format(context=context_text, question=question)
        return self._generate_or_raise(prompt)

    def generate_title(self, content: str) -> str:
        prompt = prompts.TITLE_PROMPT.format(excerpt=_excerpt(content, TITLE_EXCERPT_CHARS))
        return clean_title(self._generate_or_raise(prompt))

    def classify_note(self, title: str, content: str) -> str:
        prompt = prompts.CLASSIFY_NOTE_PROMPT.format(
            categories=", ".join(CATEGORIES), title=title, content=content
        )
        return normalize_category(self._generate_or_raise(prompt))

    def analyze_note(self, content: str, include_summary: bool = False) -> NoteAnalysis:
        """Title, category and (optionally) summary in a single call"""
        if include_summary:
            summary_instruction = prompts.SUMMARY_INSTRUCTION
            summary_field = '"summary": "your summary here"'
        else:
            summary_instruction = ""
            summary_field = '"summary": ""'

        prompt = prompts.NOTE_ANALYSIS_PROMPT.format(
            categories=", ".join(CATEGORIES),
            summary_instruction=summary_instruction,
            excerpt=_excerpt(content, ANALYSIS_EXCERPT_CHARS),
            summary_field=summary_field,
        )
        text = self._generate_or_raise(prompt, json_mode=True)

        try:
            data = json.loads(clean_markdown_code_blocks(text))
        except ValueError as e:
            logger.error(f"Failed to parse analysis JSON: {e}")
            raise GenerationError(f"Failed to parse analysis response: {e}") from e
        if not isinstance(data, dict):
            raise GenerationError("Analysis response is not a JSON object")

        return NoteAnalysis(
            title=clean_title(str(data.get("title") or "")),
            category=normalize_category(str(data.get("category") or DEFAULT_CATEGORY)),
            summary=str(data.get("summary") or "") if include_summary else "",
        )

    def generate_summary_with_prompt(self, content: str, custom_prompt: str = "") -> str:
        if custom_prompt:
            prompt = prompts.CUSTOM_SUMMARY_PROMPT.format(custom_prompt=custom_prompt, content=content)
        else:
            prompt = prompts.DEFAULT_SUMMARY_PROMPT.format(content=content)
        return self._generate_or_raise(prompt)

    def generate_structured_summary(
        self, content: str, prompt_text: str = "", prompt_schema: str = ""
    ) -> Tuple[str, Optional[Dict[str, Any]]]:
        """
        Summarize content, returning (summary, structured_data).

        Without a schema this is a plain summary and structured_data is None.
        With a schema the model must return JSON; if it doesn't, the raw text
        is used as the summary.
        """
        if not prompt_schema:
            return self.generate_summary_with_prompt(content, prompt_text), None

        prompt = prompts.STRUCTURED_SUMMARY_PROMPT.format(
            prompt_text=prompt_text, prompt_schema=prompt_schema, content=content
        )
        text = self._generate_or_raise(prompt, json_mode=True)

        try:
            structured_data = json.loads(clean_markdown_code_blocks(text))
        except ValueError as e:
            logger.warning(f"Failed to parse structured summary JSON, using raw text: {e}")
            return text, None
        if not isinstance(structured_data, dict):
            return text, None

        summary = structured_data.get("summary")
        return (summary if isinstance(summary, str) else ""), structured_data

    def ask_about_content(self, prompt: str, content: str) -> str:
        return self._generate_or_raise(
            prompts.ASK_ABOUT_CONTENT_PROMPT.format(prompt=prompt, content=content)
        )

    # =========================================================================
    # Embeddings
    # =========================================================================

    def generate_embedding(self, text: str) -> List[float]:
        """Embed a single text; raises EmbeddingError on provider failure"""
        result = self.get_embeddings([text])
        if not result["success"]:
            raise EmbeddingError(f"Failed to generate embedding: {result['error']}")
        embeddings = result["embeddings"]
        if not embeddings or not embeddings[0]:
            raise EmbeddingError("No embedding returned")
        return embeddings[0]

    def get_embeddings(self, texts: List[str]) -> Dict[str, Any]:
        """
        Generate embeddings for a list of texts

        Args:
            texts: List of text strings to embed

        Returns:
            Dict with 'success', 'embeddings' (list of vectors), 'error' (if failed)
        """
        if not texts:
            return {"success": False, "error": "No texts provided"}

        try:
            config = self._get_embedding_config()
            provider = config['provider']

            if provider == "ollama":
                return self._get_embeddings_ollama(texts, config)
            elif provider in ["openai", "openai_compatible"]:
                return self._get_embeddings_openai(texts, config)
            elif provider == "gemini":
                return self._get_embeddings_gemini(texts, config)
            else:
                return {
                    "success": False,
                    "error": f"Unsupported provider: {provider}"
                }

        except Exception as e:
            logger.error(f"Failed to generate embeddings: {e}")
            return {"success": False, "error": str(e)}

    def _get_embeddings_ollama(self, texts: List[str], config: Dict[str, Any]) -> Dict[str, Any]:
        endpoint = f"{config['endpoint_url']}/api/embeddings"

        embeddings = []
        for text in texts:
            try:
                response = self.session.post(
                    endpoint,
                    json={
                        "model": config['model'],
                        "prompt": text,
                    },
                    timeout=config['timeout'],
                )
                response.raise_for_status()
                data = response.json()
                embeddings.append(normalize_vector(data["embedding"]))

            except Exception as e:
                logger.error(f"Ollama embedding failed: {e}")
                return {"success": False, "error": str(e)}

        return {
            "success": True,
            "embeddings": embeddings,
            "model": config['model'],
        }

    def _get_embeddings_openai(self, texts: List[str], config: Dict[str, Any]) -> Dict[str, Any]:
        endpoint = f"{config['endpoint_url']}/v1/embeddings"

        headers = {}
        if config['api_key']:
            headers["Authorization"] = f"Bearer {config['api_key']}"

        try:
            response = self.session.post(
                endpoint,
                json={
                    "model": config['model'],
                    "input": texts,
                },
                headers=headers,
                timeout=config['timeout'],
            )
            response.raise_for_status()
            data = response.json()

            # Extract and normalize embeddings in order
            raw_embeddings = [item["embedding"] for item in sorted(data["data"], key=lambda x: x["index"])]
            embeddings = [normalize_vector(emb) for emb in raw_embeddings]

            return {
                "success": True,
                "embeddings": embeddings,
                "model": data.get("model", config['model']),
            }

        except Exception as e:
            logger.error(f"OpenAI embedding failed: {e}")
            return {"success": False, "error": str(e)}

    def _get_embeddings_gemini(self, texts: List[str], config: Dict[str, Any]) -> Dict[str, Any]:
        model = config['model']
        endpoint = f"{config['endpoint_url']}/v1beta/models/{model}:embedContent"
        headers = {"x-goog-api-key": config['api_key'] or ""}

        embeddings = []
        for text in texts:
            try:
                response = self.session.post(
                    endpoint,
                    json={"content": {"parts": [{"text": text}]}},
                    headers=headers,
                    timeout=config['timeout'],
                )
                response.raise_for_status()
                values = response.json().get("embedding", {}).get("values") or []
                if not values:
                    return {"success": False, "error": "No embedding returned"}
                embeddings.append(normalize_vector(values))

            except Exception as e:
                logger.error(f"Gemini embedding failed: {e}")
                return {"success": False, "error": str(e)}

        return {"success": True, "embeddings": embeddings, "model": model}


# Global instance
llm_service = LLMService()
