"""Voice tables: provider -> language -> gender -> vendor voice descriptor."""

from typing import Any

FALLBACK_LANGUAGE = "en"
FALLBACK_GENDER = "female"

ELEVENLABS_VOICES: dict[str, dict[str, str]] = {
    "en": {
        "female": "t5ztDJA7pj9EyW9QIcJ2",  # Rachel
        "male": "pNInz6obpgDQGcFmaJgB",  # Adam
    },
    "es": {
        "female": "f9DFWr0Y8aHd6VNMEdTt",
        "male": "N2lVS1wzXKqndCShpkY4",  # Josh, multilingual
    },
}

POLLY_VOICES: dict[str, dict[str, dict[str, str]]] = {
    "en": {
        "female": {"Engine": "neural", "VoiceId": "Joanna", "LanguageCode": "en-US"},
        "male": {"Engine": "neural", "VoiceId": "Matthew", "LanguageCode": "en-US"},
    },
    "es": {
        "female": {"Engine": "neural", "VoiceId": "Lucia", "LanguageCode": "es-ES"},
        "male": {"Engine": "neural", "VoiceId": "Enrique", "LanguageCode": "es-ES"},
    },
}

GOOGLE_VOICES: dict[str, dict[str, dict[str, str]]] = {
    "en": {
        "female": {"languageCode": "en-US", "name": "en-US-Neural2-F", "ssmlGender": "FEMALE"},
        "male": {"languageCode": "en-US", "name": "en-US-Neural2-D", "ssmlGender": "MALE"},
    },
    "es": {
        "female": {"languageCode": "es-ES", "name": "es-ES-Neural2-A", "ssmlGender": "FEMALE"},
        "male": {"languageCode": "es-ES", "name": "es-ES-Neural2-B", "ssmlGender": "MALE"},
    },
}

# Standard-tier Google voices used as the last resort after the chain fails.
GOOGLE_SAFETY_NET_VOICES: dict[str, str] = {
    "en": "en-US-Standard-A",
    "es": "es-ES-Standard-A",
}

# Browser voice hints; voice_index matches the voice list order the
# front end enumerates for Chrome's "Google español" voice.
WEB_SPEECH_VOICES: dict[str, dict[str, dict[str, Any]]] = {
    "en": {
        "female": {"lang": "en-US", "voice_index": None},
        "male": {"lang": "en-US", "voice_index": None},
    },
    "es": {
        "female": {"lang": "es-ES", "voice_index": None},
        "male": {"lang": "es-ES", "voice_index": 195},
    },
}


def select_voice(table: dict[str, dict[str, Any]], language: str, gender: str) -> Any:
    """Look up a voice descriptor, falling back to defaults.

    Regional codes ("es-MX") resolve to their base language. Unknown
    languages fall back to English and unknown genders fall back to the
    female voice of the selected language.

    Args:
        table: Nested mapping of language -> gender -> descriptor
        language: Requested language code
        gender: Requested gender

    Returns:
        The vendor-specific voice descriptor
    """
    by_gender = (
        table.get(language)
        or table.get(language.split("-")[0])
        or table[FALLBACK_LANGUAGE]
    )
    return by_gender.get(gender) or by_gender[FALLBACK_GENDER]
