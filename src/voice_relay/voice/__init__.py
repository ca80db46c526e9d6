"""Voice capture, transcription and synthesis module boundaries."""

from .activity import SpeechActivityMonitor
from .input import AudioCaptureController, CaptureState
from .interfaces import AudioPlayer, MicrophoneSource, MicrophoneStream, SpeechRecognizer, SpeechSynthesizer
from .output import CancellationToken, SpeechSynthesisController
from .transcription import TranscriptionClient, language_code

__all__ = [
    "AudioCaptureController",
    "AudioPlayer",
    "CancellationToken",
    "CaptureState",
    "MicrophoneSource",
    "MicrophoneStream",
    "SpeechActivityMonitor",
    "SpeechRecognizer",
    "SpeechSynthesisController",
    "SpeechSynthesizer",
    "TranscriptionClient",
    "language_code",
]
