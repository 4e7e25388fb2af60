"""
Local runner: input.jpg -> output.png, with a live preview window.

Exit codes: 0 on normal termination, 1 on I/O failure, 2 on bad configuration.
"""
import sys
import traceback
from typing import Optional

from pydantic import ValidationError

from .anchors import generate_anchors
from .config import StringArtConfig, ConfigurationError
from .selector import ChordSelector
from .sink import WindowSink, write_output
from .target import load_target

INPUT_PATH = "input.jpg"
OUTPUT_PATH = "output.png"

# Parameters for the string art generator
SIZE = 300
NUM_ANCHORS = 271
TOLERANCE = 0.5
MODE = "fast"  # "slow" scores every pair: better image, much slower
SHAPE = "circle"  # "square" is handy for debugging
LOG_EVERY = 50  # chords between progress lines

EXIT_OK = 0
EXIT_IO_ERROR = 1
EXIT_CONFIG_ERROR = 2


def build_config(overrides: Optional[dict] = None) -> StringArtConfig:
    params = dict(size=SIZE, num_anchors=NUM_ANCHORS, tolerance=TOLERANCE,
                  mode=MODE, shape=SHAPE)
    params.update(overrides or {})
    return StringArtConfig(**params)


def log_progress(count: int, chord, loss: float) -> None:
    if count % LOG_EVERY == 0:
        print(f"[string-art] {count} chords, loss={loss:.3f}, last={chord}", flush=True)


def main(overrides: Optional[dict] = None, preview: bool = True,
         input_path: str = INPUT_PATH, output_path: str = OUTPUT_PATH) -> int:
    try:
        config = build_config(overrides)
        anchors = generate_anchors(config.num_anchors, config.size, config.shape)
    except (ValidationError, ConfigurationError) as e:
        print(f"[string-art] invalid configuration: {e}", flush=True)
        return EXIT_CONFIG_ERROR

    try:
        target = load_target(input_path, config)
    except (OSError, ValueError) as e:
        print(f"[string-art] could not read {input_path}: {e}", flush=True)
        return EXIT_IO_ERROR

    sink = None
    if preview:
        try:
            sink = WindowSink(config.size)
        except Exception as e:
            print(f"[string-art] could not open preview window: {e!r}", flush=True)
            traceback.print_exc()
            return EXIT_IO_ERROR

    selector = ChordSelector(target, anchors, config)
    print(f"[string-art] {config.mode} mode, {config.num_anchors} anchors, "
          f"initial loss={selector.prev_loss:.3f}", flush=True)
    result = selector.run(sink, on_chord=log_progress)
    print(f"[string-art] done: {len(result.chords)} chords, "
          f"loss={result.final_loss:.3f}, stopped on {result.stop_reason}", flush=True)

    try:
        write_output(result.working, output_path)
    except OSError as e:
        print(f"[string-art] could not write {output_path}: {e}", flush=True)
        return EXIT_IO_ERROR

    if sink is not None:
        sink.finish(result.working)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
