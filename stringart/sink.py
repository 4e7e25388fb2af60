import os
import time
from pathlib import Path

import numpy as np
import matplotlib.pyplot as plt
import imageio.v2 as imageio
from skimage import io

from .grid import to_pixels

FRAME_PREFIX = "frame_"


def write_output(working: np.ndarray, path) -> None:
    """Writes the grid as a single-channel 8-bit PNG, white background."""
    io.imsave(str(path), to_pixels(working), check_contrast=False)


def save_frame(working: np.ndarray, fname, dpi: int = 150) -> None:
    plt.figure(figsize=(6, 6))
    plt.imshow(to_pixels(working), cmap="gray", vmin=0, vmax=255)
    plt.axis("off")
    plt.tight_layout(pad=0)
    plt.savefig(fname, dpi=dpi, bbox_inches="tight", pad_inches=0)
    plt.close()


def make_mp4_from_frames(frames_dir, mp4_path, fps: int = 30) -> bool:
    """Stitches the PNG frames into an MP4. Returns False if there were none."""
    frames = sorted(
        os.path.join(frames_dir, f)
        for f in os.listdir(frames_dir)
        if f.startswith(FRAME_PREFIX) and f.lower().endswith(".png")
    )
    if not frames:
        return False

    writer = imageio.get_writer(str(mp4_path), fps=fps)
    try:
        for f in frames:
            im = imageio.imread(f)
            if im.ndim == 2:
                im = np.stack([im, im, im], axis=-1)
            if im.shape[-1] == 4:
                im = im[:, :, :3]
            if im.dtype != np.uint8:
                im = np.clip(im * 255, 0, 255).astype(np.uint8)
            writer.append_data(im)
    finally:
        writer.close()
    return True


class Sink:
    """Receives the working grid after every accepted chord."""

    def is_open(self) -> bool:
        return True

    def show(self, working: np.ndarray) -> None:
        pass

    def finish(self, working: np.ndarray) -> None:
        pass


class FrameSink(Sink):
    """
    Snapshots the working grid every `snapshot_every` chords for a timelapse.
    On finish, the frames are stitched into `mp4_path` if one is given.
    """

    def __init__(self, frames_dir, snapshot_every: int = 20,
                 mp4_path=None, fps: int = 30):
        self.frames_dir = Path(frames_dir)
        self.snapshot_every = snapshot_every
        self.mp4_path = mp4_path
        self.fps = fps
        self.chords_seen = 0
        self.frames_written = 0
        self.video_written = False

    def _snapshot(self, working: np.ndarray) -> None:
        self.frames_dir.mkdir(parents=True, exist_ok=True)
        fname = self.frames_dir / f"{FRAME_PREFIX}{self.chords_seen:05d}.png"
        save_frame(working, fname)
        self.frames_written += 1

    def start(self, working: np.ndarray) -> None:
        if self.snapshot_every:
            self._snapshot(working)  # initial blank

    def show(self, working: np.ndarray) -> None:
        self.chords_seen += 1
        if self.snapshot_every and self.chords_seen % self.snapshot_every == 0:
            self._snapshot(working)

    def finish(self, working: np.ndarray) -> None:
        if not self.snapshot_every:
            return
        if self.chords_seen % self.snapshot_every != 0:
            self._snapshot(working)  # make sure the last frame is the final image
        if self.mp4_path is not None:
            self.video_written = make_mp4_from_frames(self.frames_dir, self.mp4_path, fps=self.fps)


class WindowSink(Sink):
    """
    Live preview in a matplotlib window. Closing the window ends the run.
    Redraws are limited to `fps` per second.
    """

    def __init__(self, size: int, title: str = "String Art", fps: float = 30.0):
        self.min_interval = 1.0 / fps if fps else 0.0
        self._last_draw = 0.0
        self._closed = False

        plt.ion()
        self.fig, self.ax = plt.subplots(figsize=(6, 6), num=title)
        self.ax.axis("off")
        self.image = self.ax.imshow(np.full((size, size), 255, dtype=np.uint8),
                                    cmap="gray", vmin=0, vmax=255)
        self.fig.canvas.mpl_connect("close_event", self._on_close)
        plt.show(block=False)

    def _on_close(self, event) -> None:
        self._closed = True

    def is_open(self) -> bool:
        return not self._closed and plt.fignum_exists(self.fig.number)

    def show(self, working: np.ndarray) -> None:
        now = time.monotonic()
        if now - self._last_draw < self.min_interval:
            return
        self._last_draw = now
        self._draw(working)

    def _draw(self, working: np.ndarray) -> None:
        self.image.set_data(to_pixels(working))
        self.fig.canvas.draw_idle()
        self.fig.canvas.flush_events()

    def finish(self, working: np.ndarray) -> None:
        """Shows the final grid and keeps the window up until it is closed."""
        if not self.is_open():
            return
        self._draw(working)
        plt.ioff()
        plt.show()
