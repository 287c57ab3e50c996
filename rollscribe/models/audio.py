"""Audio-related data models."""

from dataclasses import dataclass

BYTES_PER_SAMPLE = 2  # paInt16


@dataclass(frozen=True)
class AudioChunk:
    """One microphone read handed from capture to recognition."""
    data: bytes
    sequence_number: int
    timestamp: float  # Unix time the read completed
    sample_rate: int = 16000
    channels: int = 1

    @property
    def duration_ms(self) -> int:
        frame_bytes = self.channels * BYTES_PER_SAMPLE
        return int(len(self.data) / frame_bytes / self.sample_rate * 1000)


@dataclass
class AudioStats:
    """Audio recording statistics."""
    is_recording: bool
    duration_seconds: float
    sample_rate: int
    chunk_size: int
    total_chunks: int
    peak_level: float = 0.0  # 0.0 - 1.0, latest chunk
