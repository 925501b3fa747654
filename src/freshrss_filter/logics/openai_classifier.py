import json
import logging
from typing import Any, Dict, List, Optional

from openai import OpenAI, OpenAIError
from pydantic import ValidationError

from freshrss_filter.errors import ClassifyError
from freshrss_filter.models import DEFAULT_SYSTEM_PROMPT, Verdict

class OpenAIClassifier:
    """
    Advertisement classifier backed by an OpenAI compatible chat completion endpoint.
    """
    def __init__(
            self,
            api_key: str,
            model: str = "gpt-4o-mini",
            system_prompt: str = DEFAULT_SYSTEM_PROMPT,
            api_base: Optional[str] = None,
            temperature: Optional[float] = None,
            max_tokens: Optional[int] = None,
            *,
            client: Optional[OpenAI] = None # if provided, client parameters will be ignored
        ):
        self.model = model
        self.system_prompt = system_prompt
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.client = client or OpenAI(api_key=api_key, base_url=api_base)

    def classify(self, text: str) -> Verdict:
        """
        Classify the review text of an item.
        """
        options: Dict[str, Any] = {}
        if self.temperature is not None:
            options["temperature"] = self.temperature
        if self.max_tokens is not None:
            options["max_tokens"] = self.max_tokens

        try:
            completion = self.client.chat.completions.create(
                model=self.model,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": self.system_prompt},
                    {"role": "user", "content": text},
                ],
                **options,
            )
        except OpenAIError as e:
            raise ClassifyError(f"Classifier request failed: {e}", status_code=getattr(e, "status_code", None)) from e

        # Validate the response
        raw = ""
        if completion.choices:
            raw = completion.choices[0].message.content or ""
        if not raw.strip():
            logging.warning("No content in the response from the classifier")
            raw = "{}"
        return parse_verdict(raw)

def strip_code_fences(text: str) -> str:
    """
    Remove a surrounding Markdown code fence, e.g. ```json ... ```.
    """
    stripped = text.strip()
    if not stripped.startswith("```"):
        return stripped
    # Drop the opening fence line, which may carry a language tag.
    _, _, rest = stripped.partition("\n")
    rest = rest.rstrip()
    if rest.endswith("```"):
        rest = rest[:-3]
    return rest.strip()

def select_verdict(verdicts: List[Verdict]) -> Verdict:
    """
    Pick one verdict out of a list: the most confident ad if any, else the most confident overall.
    """
    if not verdicts:
        raise ClassifyError("Classifier returned an empty list of verdicts")
    ads = [verdict for verdict in verdicts if verdict.is_ad]
    candidates = ads or verdicts
    return max(candidates, key=lambda verdict: verdict.confidence)

def parse_verdict(raw: str) -> Verdict:
    """
    Parse the classifier reply, which is either a single verdict object or a list of them.
    """
    content = strip_code_fences(raw)
    try:
        payload = json.loads(content)
    except ValueError as e:
        raise ClassifyError(f"Classifier reply is not JSON: {raw!r}") from e

    try:
        if isinstance(payload, list):
            return select_verdict([Verdict.model_validate(entry) for entry in payload])
        return Verdict.model_validate(payload)
    except ValidationError as e:
        raise ClassifyError(f"Classifier reply does not match the verdict schema: {raw!r}") from e
