"""Spoken advisories via Piper TTS.

Piper renders raw S16 mono PCM, which is then handed to ``pw-play``
(PipeWire).  ``speak()`` only enqueues; a daemon worker renders and plays
one advisory at a time, so callers on the event loop never wait on audio.
"""

from __future__ import annotations

import os
import queue
import shutil
import subprocess
import threading

from loguru import logger

DEFAULT_PIPER_DIR = os.path.expanduser("~/models/piper")
DEFAULT_PIPER_BIN = os.path.join(DEFAULT_PIPER_DIR, "piper")
DEFAULT_VOICE_MODEL = os.path.join(DEFAULT_PIPER_DIR, "en_US-amy-medium.onnx")

SYNTH_TIMEOUT = 30.0
PLAY_TIMEOUT = 60.0


class NullSpeaker:
    """Speech sink used when TTS is disabled; records what it was given."""

    def __init__(self) -> None:
        self.spoken: list[str] = []

    def speak(self, text: str) -> None:
        self.spoken.append(text)

    def shutdown(self) -> None:
        pass


class Speaker:
    """Text-to-speech using Piper with queued playback via pw-play."""

    def __init__(
        self,
        piper_bin: str = DEFAULT_PIPER_BIN,
        voice_model: str = DEFAULT_VOICE_MODEL,
        sample_rate: int = 22050,
        player: str = "pw-play",
    ):
        self.piper_bin = os.path.abspath(os.path.expanduser(piper_bin))
        self.voice_model = os.path.abspath(os.path.expanduser(voice_model))
        self.sample_rate = sample_rate
        self.player = player

        self._queue: queue.Queue[str | None] = queue.Queue()
        self._thread = threading.Thread(target=self._worker, name="tts", daemon=True)
        self._thread.start()

    @property
    def available(self) -> bool:
        """Piper, its voice model and the audio player are all present."""
        return (
            os.path.isfile(self.piper_bin)
            and os.path.isfile(self.voice_model)
            and shutil.which(self.player) is not None
        )

    def speak(self, text: str) -> None:
        self._queue.put(text)

    def shutdown(self) -> None:
        self._queue.put(None)
        self._thread.join(timeout=5)

    def _worker(self) -> None:
        while True:
            text = self._queue.get()
            if text is None:
                break
            if not self.available:
                logger.info(f'[TTS unavailable] "{text}"')
                continue
            try:
                self._play(self._synthesize(text))
            except subprocess.TimeoutExpired as e:
                logger.warning(f"TTS timeout in {os.path.basename(str(e.cmd[0]))}")
            except (OSError, subprocess.CalledProcessError) as e:
                logger.warning(f"TTS error: {e}")

    def _synth_cmd(self) -> list[str]:
        return [self.piper_bin, "--model", self.voice_model, "--output-raw"]

    def _play_cmd(self) -> list[str]:
        """Player command for raw S16 mono PCM on stdin."""
        return [self.player, "--format=s16", f"--rate={self.sample_rate}", "--channels=1", "-"]

    def _synthesize(self, text: str) -> bytes:
        """Render one advisory to raw PCM."""
        result = subprocess.run(
            self._synth_cmd(),
            input=text.encode("utf-8"),
            capture_output=True,
            timeout=SYNTH_TIMEOUT,
            check=True,
        )
        return result.stdout

    def _play(self, pcm: bytes) -> None:
        if not pcm:
            return
        result = subprocess.run(
            self._play_cmd(),
            input=pcm,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            timeout=PLAY_TIMEOUT,
        )
        err = result.stderr.decode(errors="replace").strip()
        if result.returncode != 0 and err:
            logger.warning(f"Playback error: {err}")
