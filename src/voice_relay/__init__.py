"""Voice relay: microphone capture, transcription, relay and spoken responses."""
