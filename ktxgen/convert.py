from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
import logging
import os
import shutil
import subprocess
import sys
import threading
from threading import Lock
from typing import Callable, Iterable

from .models import (
    ConversionRequest,
    ImageJob,
    ImageSource,
    InvocationResult,
    TextureFormat,
    TextureQuality,
)
from .probe import get_alpha_probe, has_alpha
from .walker import iter_images

logger = logging.getLogger(__name__)

WINDOWS_CREATIONFLAGS = (
    getattr(subprocess, "CREATE_NO_WINDOW", 0) if sys.platform.startswith("win") else 0
)
COMPRESSOR_NAMES = ["PVRTexToolCLI", "pvrtextoolcli"]
COMPRESSOR_ENV = "PVRTEXTOOLCLI"
CHANNEL_LAYOUT = "UBN,lRGB"


@dataclass(frozen=True)
class FormatPolicy:
    suffix: str
    opaque_format: str
    alpha_format: str | None = None
    quality_tokens: dict[TextureQuality, str] | None = None
    geometry: str = "-pot + -m"
    skip_with_alpha: bool = False

    def pixel_format(self, has_alpha: bool) -> str:
        if has_alpha and self.alpha_format:
            return self.alpha_format
        return self.opaque_format

    def quality_token(self, quality: TextureQuality) -> str | None:
        if self.quality_tokens is None:
            return None
        return self.quality_tokens[quality]


_ETC_QUALITY = {TextureQuality.HIGH: "etcslowperceptual", TextureQuality.LOW: "etcfast"}

# Iteration order is the order commands are issued for each image.
FORMAT_POLICIES: dict[TextureFormat, FormatPolicy] = {
    TextureFormat.PVRTC: FormatPolicy(
        suffix="-pvrtc",
        opaque_format="PVRTC1_2_RGB",
        alpha_format="PVRTC1_2",
        quality_tokens={TextureQuality.HIGH: "pvrtcbest", TextureQuality.LOW: "pvrtcfastest"},
        geometry="-pot + -square + -m -dither",
    ),
    TextureFormat.ETC1: FormatPolicy(
        suffix="-etc1",
        opaque_format="ETC1",
        quality_tokens=_ETC_QUALITY,
        skip_with_alpha=True,
    ),
    TextureFormat.ETC2: FormatPolicy(
        suffix="-etc2",
        opaque_format="ETC2_RGB",
        alpha_format="ETC2_RGBA",
        quality_tokens=_ETC_QUALITY,
    ),
    TextureFormat.ASTC: FormatPolicy(
        suffix="-astc",
        opaque_format="ASTC_8x8",
        quality_tokens={TextureQuality.HIGH: "astcexhaustive", TextureQuality.LOW: "astcveryfast"},
    ),
    TextureFormat.DXT: FormatPolicy(
        suffix="-dxt",
        opaque_format="BC1",
        alpha_format="BC2",
    ),
}


def build_output_path(job: ImageJob, texture_format: TextureFormat) -> Path:
    return Path(f"{job.output_base}{FORMAT_POLICIES[texture_format].suffix}.ktx")


def build_command(
    compressor: str,
    job: ImageJob,
    texture_format: TextureFormat,
    quality: TextureQuality,
) -> str | None:
    policy = FORMAT_POLICIES[texture_format]
    if policy.skip_with_alpha and job.has_alpha:
        return None
    orientation = "-cube" if job.is_cube else "-flip y"
    parts = [
        compressor,
        f'-i "{job.file_argument}"',
        orientation,
        policy.geometry,
        f"-f {policy.pixel_format(job.has_alpha)},{CHANNEL_LAYOUT}",
    ]
    token = policy.quality_token(quality)
    if token:
        parts.append(f"-q {token}")
    parts.append(f'-o "{build_output_path(job, texture_format)}"')
    return " ".join(parts)


def build_commands(
    compressor: str,
    job: ImageJob,
    formats: Iterable[TextureFormat],
    quality: TextureQuality,
) -> list[tuple[TextureFormat, str]]:
    requested = set(formats)
    commands = []
    for texture_format in FORMAT_POLICIES:
        if texture_format not in requested:
            continue
        command = build_command(compressor, job, texture_format, quality)
        if command is not None:
            commands.append((texture_format, command))
    return commands


def run_command(command: str) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        command,
        shell=True,
        capture_output=True,
        text=True,
        creationflags=WINDOWS_CREATIONFLAGS,
    )


def launch_command(command: str) -> subprocess.Popen[bytes]:
    return subprocess.Popen(command, shell=True, creationflags=WINDOWS_CREATIONFLAGS)


class BlockingPolicy:
    """Runs every task inline and waits for each compressor to exit."""

    def submit(self, task: Callable[..., object], *args: object) -> None:
        task(*args)

    def run_command(self, command: str) -> tuple[int | None, str]:
        result = run_command(command)
        return result.returncode, result.stderr or ""


class SpawningPolicy:
    """Starts a thread per task and launches compressors without waiting.

    Launched compressors are never waited on. Task threads are tracked so a
    caller can ``wait`` for the walk to finish and read the errors that ended
    any task.
    """

    def __init__(self) -> None:
        self.threads: list[threading.Thread] = []
        self.errors: list[Exception] = []
        self._lock = Lock()

    def submit(self, task: Callable[..., object], *args: object) -> None:
        thread = threading.Thread(
            target=self._run_task, args=(task, args), name="ktxgen-task"
        )
        with self._lock:
            self.threads.append(thread)
        thread.start()

    def _run_task(self, task: Callable[..., object], args: tuple[object, ...]) -> None:
        try:
            task(*args)
        except Exception as exc:
            logger.error("后台任务失败：%s", exc)
            with self._lock:
                self.errors.append(exc)

    def wait(self) -> list[Exception]:
        index = 0
        while True:
            with self._lock:
                if index >= len(self.threads):
                    return list(self.errors)
                thread = self.threads[index]
            thread.join()
            index += 1

    def run_command(self, command: str) -> tuple[int | None, str]:
        launch_command(command)
        return None, ""


def get_policy(run_async: bool) -> BlockingPolicy | SpawningPolicy:
    return SpawningPolicy() if run_async else BlockingPolicy()


class TextureConverter:
    def __init__(
        self,
        request: ConversionRequest,
        policy: BlockingPolicy | SpawningPolicy | None = None,
    ) -> None:
        self.request = request
        self.policy = policy if policy is not None else get_policy(request.run_async)
        # unknown probe names fail before the walk starts
        get_alpha_probe(request.alpha_probe)
        self.results: list[InvocationResult] = []
        self._lock = Lock()

    def run(self) -> list[InvocationResult]:
        self.policy.submit(self.walk)
        return self.results

    def walk(self) -> None:
        for source in iter_images(self.request.input_dir, self.request.clean):
            self.policy.submit(self.convert, source)

    def make_job(self, source: ImageSource) -> ImageJob:
        alpha = has_alpha(source.path, self.request.alpha_probe)
        return ImageJob(source.files, alpha, source.is_cube)

    def convert(self, source: ImageSource) -> list[InvocationResult]:
        job = self.make_job(source)
        results = []
        commands = build_commands(
            self.request.compressor, job, self.request.formats, self.request.quality
        )
        for texture_format, command in commands:
            logger.debug("执行：%s", command)
            returncode, stderr = self.policy.run_command(command)
            result = InvocationResult(
                command=command,
                texture_format=texture_format,
                output=build_output_path(job, texture_format),
                returncode=returncode,
                stderr=stderr,
            )
            if result.success:
                logger.info("%s -> %s", job.files[0], result.output)
            else:
                logger.error(
                    "%s 转换失败（退出码 %s）：%s",
                    result.output,
                    returncode,
                    stderr.strip(),
                )
            results.append(result)
        with self._lock:
            self.results.extend(results)
        return results


def supported_formats(formats: Iterable[TextureFormat]) -> tuple[TextureFormat, ...]:
    formats = tuple(formats)
    if detect_platform() == "macos" and TextureFormat.DXT in formats:
        logger.warning("macOS 不支持 DXT 格式，已跳过")
        formats = tuple(fmt for fmt in formats if fmt is not TextureFormat.DXT)
    return formats


def generate_textures(
    request: ConversionRequest,
    policy: BlockingPolicy | SpawningPolicy | None = None,
) -> list[InvocationResult]:
    """Convert every image under ``request.input_dir`` into KTX textures.

    In blocking mode the returned list holds one result per compressor run.
    In async mode the call returns as soon as the walk has been started and
    the list is filled in, without exit codes, as launches happen. Pass a
    ``SpawningPolicy`` and call its ``wait`` to learn whether the walk failed.
    """
    request = replace(request, formats=supported_formats(request.formats))
    return TextureConverter(request, policy).run()


def find_compressor(explicit: str | None = None) -> str | None:
    if explicit:
        return explicit
    from_env = os.environ.get(COMPRESSOR_ENV)
    if from_env:
        return from_env
    for name in COMPRESSOR_NAMES:
        system_path = shutil.which(name)
        if system_path:
            return system_path
    return None


def detect_platform() -> str:
    if sys.platform.startswith("win"):
        return "windows"
    if sys.platform == "darwin":
        return "macos"
    return "linux"
