"""
Services layer: audio capture, streaming transcription, persistence,
the interactive recording session and the post-recording insight workflow.
"""
