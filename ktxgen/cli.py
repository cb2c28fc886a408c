from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .convert import SpawningPolicy, find_compressor, generate_textures, get_policy
from .models import ConversionRequest, parse_formats, parse_quality
from .probe import get_probe_registry

logger = logging.getLogger("ktxgen")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(message)s",
        stream=sys.stderr,
    )
    compressor = find_compressor(args.compressor)
    if not compressor:
        logger.error("未找到 PVRTexToolCLI，请使用 --compressor 指定路径")
        return 2
    request = ConversionRequest(
        compressor=compressor,
        input_dir=args.input_dir,
        quality=args.quality,
        formats=args.formats,
        run_async=args.run_async,
        alpha_probe=args.alpha_probe,
        clean=args.clean,
    )
    policy = get_policy(request.run_async)
    results = generate_textures(request, policy)
    if isinstance(policy, SpawningPolicy):
        errors = policy.wait()
        return 1 if errors else 0
    failed = [result for result in results if not result.success]
    logger.info("完成：共 %d 个纹理，失败 %d 个", len(results), len(failed))
    return 1 if failed else 0


def parse_args(args: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="ktxgen", description="把 PNG/JPG 图片批量转换为 KTX GPU 纹理"
    )
    parser.add_argument("input_dir", type=Path)
    parser.add_argument("--compressor", default=None, help="PVRTexToolCLI 路径")
    parser.add_argument("--quality", default="high", help="high 或 low")
    parser.add_argument("--formats", default="all", help="PVRTC,ETC1,ETC2,ASTC,DXT 或 all")
    parser.add_argument("--async", dest="run_async", action="store_true")
    parser.add_argument("--alpha-probe", default="header", choices=sorted(get_probe_registry()))
    parser.add_argument("--clean", action="store_true", help="转换前删除目录中已有的 .ktx")
    parser.add_argument("-v", "--verbose", action="store_true")
    parsed = parser.parse_args(args)
    try:
        parsed.quality = parse_quality(parsed.quality)
        parsed.formats = parse_formats(parsed.formats)
    except ValueError as exc:
        parser.error(str(exc))
    return parsed


if __name__ == "__main__":
    raise SystemExit(main())
