import os
import threading
import time
from pathlib import Path

import pytest

from src.core.encoder import ConversionCancelled

# Fake encoders receive: -hide_banner -n -loglevel error -i INPUT -acodec alac OUTPUT
COPY_ENCODER = '#!/bin/sh\ncp "$6" "$9"\n'
FAILING_ENCODER = '#!/bin/sh\nexit 3\n'
HANGING_ENCODER = '#!/bin/sh\nexec sleep 30\n'


def make_audio_files(root: Path, count: int) -> list[Path]:
    root.mkdir(parents=True, exist_ok=True)
    files = []
    for i in range(count):
        path = root / f"track{i:02d}.mp3"
        path.write_bytes(b"FAKE_MP3")
        files.append(path)
    return files


class RecordingEncoder:
    """
    Stand-in for AlacEncoder.run that records start/end order and the
    number of encodes running at the same time.
    """

    def __init__(self, delay: float = 0.05, return_code: int = 0, wait_for_cancel: bool = False):
        self.delay = delay
        self.return_code = return_code
        self.wait_for_cancel = wait_for_cancel
        self.lock = threading.Lock()
        self.active = 0
        self.max_active = 0
        self.events: list[tuple[str, Path]] = []

    def run(self, input_path, output_path, cancel_event=None):
        with self.lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
            self.events.append(("start", Path(input_path)))
        try:
            if self.wait_for_cancel:
                if cancel_event.wait(10):
                    raise ConversionCancelled(str(input_path))
            time.sleep(self.delay)
            if self.return_code == 0:
                Path(output_path).write_bytes(b"ALAC")
            return self.return_code
        finally:
            with self.lock:
                self.active -= 1
                self.events.append(("end", Path(input_path)))

    @property
    def started(self) -> list[Path]:
        return [path for kind, path in self.events if kind == "start"]


posix_only = pytest.mark.skipif(os.name == "nt", reason="fake encoder is a POSIX shell script")
