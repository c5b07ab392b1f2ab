"""Closed error taxonomy for the voice pipeline and its user-facing messages."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from openai import APIConnectionError, APIStatusError, APITimeoutError


class VoiceErrorKind(str, Enum):
    PERMISSION_DENIED = "PERMISSION_DENIED"
    RECORDING_FAILED = "RECORDING_FAILED"
    INVALID_AUDIO = "INVALID_AUDIO"
    NO_SPEECH_DETECTED = "NO_SPEECH_DETECTED"
    TRANSCRIPTION_FAILED = "TRANSCRIPTION_FAILED"
    CHAT_FAILED = "CHAT_FAILED"
    NETWORK_ERROR = "NETWORK_ERROR"
    API_KEY_MISSING = "API_KEY_MISSING"
    LANGUAGE_DETECTION_FAILED = "LANGUAGE_DETECTION_FAILED"


_RETRYABLE_KINDS = frozenset(
    {
        VoiceErrorKind.RECORDING_FAILED,
        VoiceErrorKind.NO_SPEECH_DETECTED,
        VoiceErrorKind.TRANSCRIPTION_FAILED,
        VoiceErrorKind.CHAT_FAILED,
        VoiceErrorKind.NETWORK_ERROR,
    }
)


class VoiceServiceError(Exception):
    def __init__(self, kind: VoiceErrorKind, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.cause = cause

    @property
    def retryable(self) -> bool:
        return self.kind in _RETRYABLE_KINDS

    def __repr__(self) -> str:
        return f"VoiceServiceError(kind={self.kind.value}, message={self.message!r})"


ENGLISH_MESSAGES = {
    VoiceErrorKind.PERMISSION_DENIED: "Please allow microphone access in your device settings to use voice recording.",
    VoiceErrorKind.RECORDING_FAILED: "Unable to record audio. Please check your microphone and try again.",
    VoiceErrorKind.TRANSCRIPTION_FAILED: "Failed to convert speech to text. Please try again.",
    VoiceErrorKind.CHAT_FAILED: "Failed to get AI response. Please try again.",
    VoiceErrorKind.NO_SPEECH_DETECTED: "No speech was detected in the recording. Please speak clearly and try again.",
    VoiceErrorKind.NETWORK_ERROR: "Network connection failed. Please check your internet connection and try again.",
    VoiceErrorKind.INVALID_AUDIO: "Invalid audio file. Please record again.",
    VoiceErrorKind.API_KEY_MISSING: "API configuration missing. Please contact support.",
    VoiceErrorKind.LANGUAGE_DETECTION_FAILED: "Language detection failed. Please try again.",
}

LOCALIZED_MESSAGES = {
    "hi": {
        VoiceErrorKind.PERMISSION_DENIED: "कृपया वॉइस रिकॉर्डिंग के लिए अपनी डिवाइस सेटिंग्स में माइक्रोफोन की अनुमति दें।",
        VoiceErrorKind.RECORDING_FAILED: "ऑडियो रिकॉर्ड नहीं हो सका। कृपया अपना माइक्रोफोन जांचें और फिर से कोशिश करें।",
        VoiceErrorKind.TRANSCRIPTION_FAILED: "आवाज को टेक्स्ट में बदलने में असफल। कृपया फिर से कोशिश करें।",
        VoiceErrorKind.CHAT_FAILED: "AI प्रतिक्रिया प्राप्त करने में असफल। कृपया फिर से कोशिश करें।",
        VoiceErrorKind.NO_SPEECH_DETECTED: "रिकॉर्डिंग में कोई आवाज नहीं मिली। कृपया स्पष्ट रूप से बोलें और फिर से कोशिश करें।",
        VoiceErrorKind.NETWORK_ERROR: "नेटवर्क कनेक्शन असफल। कृपया अपना इंटरनेट कनेक्शन जांचें और फिर से कोशिश करें।",
        VoiceErrorKind.INVALID_AUDIO: "अमान्य ऑडियो फाइल। कृपया फिर से रिकॉर्ड करें।",
        VoiceErrorKind.API_KEY_MISSING: "API कॉन्फ़िगरेशन गुम है। कृपया सहायता से संपर्क करें।",
        VoiceErrorKind.LANGUAGE_DETECTION_FAILED: "भाषा की पहचान में असफल। कृपया फिर से कोशिश करें।",
    },
    "ta": {
        VoiceErrorKind.PERMISSION_DENIED: "குரல் பதிவுக்கு உங்கள் சாதன அமைப்புகளில் மைக்ரோஃபோன் அனுமதியை வழங்கவும்.",
        VoiceErrorKind.RECORDING_FAILED: "ஆடியோ பதிவு செய்ய முடியவில்லை. உங்கள் மைக்ரோஃபோனைச் சரிபார்த்து மீண்டும் முயற்சிக்கவும்.",
        VoiceErrorKind.TRANSCRIPTION_FAILED: "பேச்சை உரையாக மாற்றுவதில் தோல்வி. மீண்டும் முயற்சிக்கவும்.",
        VoiceErrorKind.CHAT_FAILED: "AI பதிலைப் பெறுவதில் தோல்வி. மீண்டும் முயற்சிக்கவும்.",
        VoiceErrorKind.NO_SPEECH_DETECTED: "பதிவில் பேச்சு கண்டறியப்படவில்லை. தெளிவாகப் பேசி மீண்டும் முயற்சிக்கவும்.",
        VoiceErrorKind.NETWORK_ERROR: "நெட்வொர்க் இணைப்பு தோல்வி. உங்கள் இணைய இணைப்பைச் சரிபார்த்து மீண்டும் முயற்சிக்கவும்.",
        VoiceErrorKind.INVALID_AUDIO: "தவறான ஆடியோ கோப்பு. மீண்டும் பதிவு செய்யவும்.",
        VoiceErrorKind.API_KEY_MISSING: "API கட்டமைப்பு காணவில்லை. ஆதரவைத் தொடர்பு கொள்ளவும்.",
        VoiceErrorKind.LANGUAGE_DETECTION_FAILED: "மொழி அடையாளம் காணுவதில் தோல்வி. மீண்டும் முயற்சிக்கவும்.",
    },
    "bn": {
        VoiceErrorKind.PERMISSION_DENIED: "ভয়েস রেকর্ডিং এর জন্য আপনার ডিভাইস সেটিংসে মাইক্রোফোন অনুমতি দিন।",
        VoiceErrorKind.RECORDING_FAILED: "অডিও রেকর্ড করতে পারছি না। আপনার মাইক্রোফোন চেক করুন এবং আবার চেষ্টা করুন।",
        VoiceErrorKind.TRANSCRIPTION_FAILED: "কথাকে টেক্সটে রূপান্তর করতে ব্যর্থ। আবার চেষ্টা করুন।",
        VoiceErrorKind.CHAT_FAILED: "AI প্রতিক্রিয়া পেতে ব্যর্থ। আবার চেষ্টা করুন।",
        VoiceErrorKind.NO_SPEECH_DETECTED: "রেকর্ডিংয়ে কোনো কথা পাওয়া যায়নি। স্পষ্ট করে বলুন এবং আবার চেষ্টা করুন।",
        VoiceErrorKind.NETWORK_ERROR: "নেটওয়ার্ক সংযোগ ব্যর্থ। আপনার ইন্টারনেট সংযোগ চেক করুন এবং আবার চেষ্টা করুন।",
        VoiceErrorKind.INVALID_AUDIO: "অবৈধ অডিও ফাইল। আবার রেকর্ড করুন।",
        VoiceErrorKind.API_KEY_MISSING: "API কনফিগারেশন অনুপস্থিত। সাপোর্টের সাথে যোগাযোগ করুন।",
        VoiceErrorKind.LANGUAGE_DETECTION_FAILED: "ভাষা শনাক্তকরণে ব্যর্থ। আবার চেষ্টা করুন।",
    },
}

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred. Please try again."


def user_message(error: BaseException, language: Optional[str] = None) -> str:
    if not isinstance(error, VoiceServiceError):
        return UNEXPECTED_ERROR_MESSAGE
    localized = LOCALIZED_MESSAGES.get((language or "").lower(), {})
    if error.kind in localized:
        return localized[error.kind]
    return ENGLISH_MESSAGES.get(error.kind, UNEXPECTED_ERROR_MESSAGE)


def _endpoint_message(exc: APIStatusError) -> str:
    body = exc.body
    if isinstance(body, dict):
        detail = body.get("error", body)
        if isinstance(detail, dict) and detail.get("message"):
            return str(detail["message"])
        if isinstance(detail, str) and detail:
            return detail
    return exc.message or f"HTTP {exc.status_code}"


def classify_api_error(
    exc: BaseException,
    kind: VoiceErrorKind,
    *,
    service: str,
    bad_request_prefix: Optional[str] = None,
) -> VoiceServiceError:
    """Translate an OpenAI SDK exception into the voice taxonomy.

    ``kind`` is the stage failure (transcription or chat). Server faults and
    transport problems always become ``NETWORK_ERROR``.
    """
    if isinstance(exc, VoiceServiceError):
        return exc
    if isinstance(exc, APIStatusError):
        status = exc.status_code
        if status in (401, 403):
            return VoiceServiceError(kind, f"Invalid {service} API key", exc)
        if status == 429:
            return VoiceServiceError(kind, "Rate limit exceeded", exc)
        if status >= 500:
            return VoiceServiceError(VoiceErrorKind.NETWORK_ERROR, "Server error occurred", exc)
        message = _endpoint_message(exc)
        if status == 400 and bad_request_prefix:
            return VoiceServiceError(kind, f"{bad_request_prefix}: {message}", exc)
        return VoiceServiceError(kind, message, exc)
    if isinstance(exc, APITimeoutError):
        return VoiceServiceError(VoiceErrorKind.NETWORK_ERROR, "Request timed out", exc)
    if isinstance(exc, APIConnectionError):
        return VoiceServiceError(VoiceErrorKind.NETWORK_ERROR, "Network connection failed", exc)
    return VoiceServiceError(kind, f"{service.capitalize()} request failed: {exc}", exc)
