# Copyright (c) 2026 CondoGuard Contributors. All Rights Reserved.

"""
Frame Source — the camera collaborator used by ScanSession.

The camera driver itself lives outside CondoGuard; anything implementing
this protocol can feed the scanner. `ScriptedFrameSource` replays a fixed
list of frames and is what the test-suite and local demos use.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, List, Optional, Protocol, Sequence

from condoguard.core.errors import AcquisitionFailedError

# A detector returns the embedded code text of a frame, or None.
CodeDetector = Callable[[Any], Optional[str]]


class FrameSource(Protocol):
    async def acquire(self) -> Any:
        """Open the device and return a handle. Raises AcquisitionFailedError."""
        ...

    async def next_frame(self, handle: Any) -> Any:
        """Suspend until the next frame is available and return it."""
        ...

    async def release(self, handle: Any) -> None:
        """Stop the device. Must tolerate being called more than once."""
        ...


class ScriptedFrameSource:
    """
    Replays `frames` in order, then blocks forever like an idle camera.

    A frame that is an Exception instance is raised instead of returned.
    """

    def __init__(
        self,
        frames: Sequence[Any] = (),
        fail_acquire: bool = False,
        frame_delay: float = 0.0,
    ) -> None:
        self._frames: List[Any] = list(frames)
        self._fail_acquire = fail_acquire
        self._frame_delay = frame_delay
        self.acquired = 0
        self.released = 0
        self.frames_served = 0
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    async def acquire(self) -> Any:
        if self._fail_acquire:
            raise AcquisitionFailedError("camera permission denied")
        self._open = True
        self.acquired += 1
        return self

    async def next_frame(self, handle: Any) -> Any:
        if self._frame_delay:
            await asyncio.sleep(self._frame_delay)
        if not self._frames:
            await asyncio.Event().wait()
        frame = self._frames.pop(0)
        self.frames_served += 1
        if isinstance(frame, Exception):
            raise frame
        return frame

    async def release(self, handle: Any) -> None:
        if self._open:
            self._open = False
            self.released += 1


def text_frame_detector(frame: Any) -> Optional[str]:
    """Detector for pre-decoded frames: a frame is either code text or None."""
    return frame if isinstance(frame, str) and frame else None
