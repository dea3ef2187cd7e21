"""Teacher Resolver Client

Higher-cost resolution path: sends the utterance with date anchors to an
OpenAI-compatible chat-completions endpoint and parses the JSON-only reply
into the same typed actions the fast path produces.
"""

import json
import re
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import requests

from ..core.config_manager import TeacherConfig
from ..core.error_handler import TeacherTimeout, TeacherUnavailable
from ..core.logging_manager import LoggingManager
from ..processors.languages import DEFAULT_LANGUAGE
from ..processors.models import Resolution, action_from_dict


LATVIAN_PROMPT = """Tu esi balss asistents latviešu valodai. Pārvērt lietotāja runu JSON formātā.

Labo acīmredzamas atpazīšanas kļūdas ("reit"→"rīt", "pulkstenis"→"pulksten", "sastajā"→"sestajā",
"grāmatu vedējs"→"grāmatvede"). Ja labo, ieliec labotu tekstu laukā "corrected_input".

Konteksts: šodien {today}, rīt {tomorrow}, laiks {current_time}, diena {weekday}, laika josla {timezone}.

Atbildi TIKAI ar JSON objektu.
Viena darbība: {{type, description, notes, start, end, hasTime, items, contact_name, contact_normalized, lang, corrected_input}}
ar type "reminder", "calendar", "shopping" vai "call_contact".
Vairāki atgādinājumi (tikai ja ir vairāki skaidri pulksteņa laiki): {{"type": "multiple", "tasks": [...]}}.

- "atgādini" → reminder; "zvanīt"/"piezvanīt" + persona → call_contact (bez laika, contact_normalized nominatīvā);
  "tikšanās", "sapulce", "pasākums" vai vieta ar laiku → calendar; "nopirkt" + saraksts → shopping ar items;
  "pieraksti", "ideja", "piezīme" → reminder bez datuma.
- "no rīta" 09:00, "pēcpusdienā"/"dienā" 14:00, "vakarā" 18:00, ja nav precīza laika.
- Plkst 1-7 bez "no rīta" ir pēcpusdiena (13-19), 8-11 ir rīts, 12 un vairāk paliek. "5 vakarā" ir 17:00.
- "divdesmit sestajā novembrī" ir datums 26.11., nevis laiks.
- "pēc X minūtēm/stundām/dienām" → pašreizējais laiks + X.
- Calendar vienmēr ar end (+1h); ja laika nav, start 14:00 un hasTime=false.
- Laiki ISO 8601 formātā ar nobīdi, piemēram {tomorrow}T09:00:00{offset}.
"""

ESTONIAN_PROMPT = """Sa oled häälassistent eesti keele jaoks. Teisenda kasutaja kõne JSON-vormingusse.

Paranda ilmsed tuvastusvead. Kui parandad, lisa parandatud tekst välja "corrected_input".

Kontekst: täna {today}, homme {tomorrow}, kellaaeg {current_time}, päev {weekday}, ajavöönd {timezone}.

Vasta AINULT JSON-objektiga.
Üks tegevus: {{type, description, notes, start, end, hasTime, items, contact_name, contact_normalized, lang, corrected_input}}
tüübiga "reminder", "calendar", "shopping" või "call_contact".
Mitu meeldetuletust (ainult kui on mitu selget kellaaega): {{"type": "multiple", "tasks": [...]}}.

- "meenuta" → reminder; "helista" + isik → call_contact (ilma ajata, contact_normalized nimetavas);
  "kohtumine", "koosolek", "üritus" või koht koos ajaga → calendar; "osta" + loetelu → shopping koos items;
  "kirjuta", "idee", "märkus" → reminder ilma kuupäevata.
- "hommikul" 09:00, "pärastlõunal"/"päeval" 14:00, "õhtul" 18:00, kui täpset aega pole.
- Kell 1-7 ilma "hommikul" on pärastlõuna (13-19), 8-11 hommik, 12 ja rohkem jääb. "5 õhtul" on 17:00.
- "kahekümne kuuendal novembril" on kuupäev 26.11., mitte kellaaeg.
- "X minuti/tunni/päeva pärast" → praegune aeg + X.
- Calendar alati koos end (+1h); kui aega pole, start 14:00 ja hasTime=false.
- Ajad ISO 8601 vormingus koos nihkega, näiteks {tomorrow}T09:00:00{offset}.
"""

PROMPTS = {
    "lv": LATVIAN_PROMPT,
    "et": ESTONIAN_PROMPT,
}

FENCE_PATTERN = re.compile(r'^\s*```(?:json)?\s*|\s*```\s*$', re.IGNORECASE)


class TeacherResolver:
    """Client for the LLM teacher behind a chat-completions API."""

    def __init__(self, config: Optional[TeacherConfig] = None, session: Optional[requests.Session] = None):
        self.config = config or TeacherConfig()
        self.logger = LoggingManager.get_logger(__name__)
        self.session = session or requests.Session()
        self.endpoint = f"{self.config.base_url}/chat/completions"

    def build_messages(self, text: str, now: datetime, language: str) -> List[Dict[str, str]]:
        """System prompt with date anchors plus the user turn."""
        tomorrow = (now + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)
        template = PROMPTS.get(language, PROMPTS[DEFAULT_LANGUAGE])
        system_prompt = template.format(
            today=now.date().isoformat(),
            tomorrow=tomorrow.date().isoformat(),
            current_time=now.strftime("%H:%M"),
            weekday=now.strftime("%A"),
            timezone=now.tzname() or "",
            offset=now.strftime("%z")[:3] + ":" + now.strftime("%z")[3:],
        )
        user_content = (
            f"currentTime={now.isoformat(timespec='seconds')}\n"
            f"tomorrowExample={tomorrow.isoformat(timespec='seconds')}\n"
            f"Text: {text}"
        )
        return [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_content},
        ]

    def resolve(self, text: str, now: datetime, language: str) -> Resolution:
        """Ask the teacher to resolve ``text``.

        Raises:
            TeacherTimeout: The request exceeded the configured timeout
            TeacherUnavailable: Transport error, error status or an unusable reply
        """
        payload = {
            "model": self.config.model,
            "temperature": 0,
            "response_format": {"type": "json_object"},
            "messages": self.build_messages(text, now, language),
        }

        try:
            response = self.session.post(
                self.endpoint,
                json=payload,
                headers=self._headers(),
                timeout=self.config.timeout,
            )
        except requests.Timeout as e:
            raise TeacherTimeout(f"Teacher did not answer within {self.config.timeout}s", self.config.timeout) from e
        except requests.RequestException as e:
            raise TeacherUnavailable(f"Teacher request failed: {e}") from e

        if response.status_code != 200:
            raise TeacherUnavailable(
                f"Teacher returned HTTP {response.status_code}", status_code=response.status_code
            )

        try:
            content = response.json()["choices"][0]["message"]["content"]
            data = self._parse_content(content)
            result = action_from_dict(data, default_language=language)
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise TeacherUnavailable(f"Unusable teacher reply: {e}") from e

        self.logger.debug(f"Teacher resolved {language} input as {result.kind.value}")
        return result

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.config.api_key is not None:
            headers["Authorization"] = f"Bearer {self.config.api_key.get_secret_value()}"
        return headers

    @staticmethod
    def _parse_content(content: Any) -> Dict[str, Any]:
        if not isinstance(content, str):
            raise ValueError("Reply content is not text")
        data = json.loads(FENCE_PATTERN.sub('', content))
        if not isinstance(data, dict):
            raise ValueError("Reply is not a JSON object")
        return data

    def close(self):
        self.session.close()
