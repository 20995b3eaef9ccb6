import threading
import time

from src.core.scheduler import ConversionScheduler
from src.models.conversion_options import ConversionOptions
from src.models.conversion_result import ConversionOutcome
from tests.helpers import FAILING_ENCODER, HANGING_ENCODER, posix_only

# Refuses an existing output, then keeps it open while it writes
SLOW_WRITING_ENCODER = '#!/bin/sh\nif [ -e "$9" ]; then exit 1; fi\nexec 3> "$9"\nsleep 0.5\ncat "$6" >&3\n'

pytestmark = posix_only


def test_end_to_end_with_fake_encoder(library, destination, make_encoder, make_options):
    encoder = make_encoder()
    files = sorted(p for p in library.rglob("*") if p.suffix in {".mp3", ".flac", ".wav"})

    report = ConversionScheduler(encoder, files, make_options(thread_count=2)).start()

    assert report.converted == 3
    assert report.failed == 0
    assert (destination / "artist" / "album" / "02 song.m4a").read_bytes() == b"FAKE_FLAC"
    assert all(r.return_code == 0 for r in report.results)


def test_failing_encoder_is_detected(library, destination, make_encoder, make_options):
    encoder = make_encoder(FAILING_ENCODER)

    report = ConversionScheduler(encoder, [library / "single.wav"], make_options()).start()

    result = report.results[0]
    assert result.outcome is ConversionOutcome.FAILED
    assert result.return_code == 3
    # The destination directory is still created before the encoder runs
    assert destination.is_dir()


def test_cancellation_terminates_running_encoder(library, destination, make_encoder, make_options):
    encoder = make_encoder(HANGING_ENCODER)
    files = [library / "single.wav", library / "artist" / "album" / "01 intro.mp3"]

    cancel_event = threading.Event()
    timer = threading.Timer(0.5, cancel_event.set)
    timer.start()
    started = time.monotonic()
    try:
        report = ConversionScheduler(encoder, files, make_options(thread_count=1)).start(cancel_event)
    finally:
        timer.cancel()

    assert time.monotonic() - started < 10
    assert report.cancelled
    assert report.chunk_count == 1
    assert report.results[0].outcome is ConversionOutcome.CANCELLED
    assert not (destination / "single.m4a").exists()


def test_colliding_inputs_keep_the_converted_file(tmp_path, destination, make_encoder):
    source = tmp_path / "music"
    source.mkdir()
    (source / "song.flac").write_bytes(b"FAKE_FLAC")
    (source / "song.mp3").write_bytes(b"FAKE_MP3")
    files = [source / "song.flac", source / "song.mp3"]
    options = ConversionOptions.create("m4a", source, destination, thread_count=2)

    report = ConversionScheduler(make_encoder(SLOW_WRITING_ENCODER), files, options).start()

    output = destination / "song.m4a"
    assert output.read_bytes() in (b"FAKE_FLAC", b"FAKE_MP3")
    assert report.converted == 1
    assert report.skipped == 1
    assert report.failed == 0
    assert [p.name for p in destination.iterdir()] == ["song.m4a"]


def test_encoder_output_left_by_a_failure_is_removed(library, destination, make_encoder, make_options):
    encoder = make_encoder('#!/bin/sh\necho partial > "$9"\nexit 1\n')

    report = ConversionScheduler(encoder, [library / "single.wav"], make_options()).start()

    assert report.failed == 1
    assert list(destination.iterdir()) == []
