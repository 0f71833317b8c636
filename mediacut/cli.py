"""Thin CLI entry point — builds a Manifest and calls the engine."""

import argparse
import logging
import sys
from pathlib import Path

from mediacut import engine
from mediacut.editors.captions import SUBTITLE_FORMATS
from mediacut.errors import MediaCutError
from mediacut.ingest import parse_clips
from mediacut.manifest import (
    AlignmentConfig,
    AnalysisConfig,
    CaptionConfig,
    ClipExportConfig,
    Manifest,
    SilenceCutConfig,
    load_manifest,
)
from mediacut.models import ExportProgress
from mediacut.timecode import parse_time


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mediacut",
        description="mediacut — transcript-driven editing: silence compaction, segment edits, clip export.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command")

    proc = sub.add_parser("process", help="Prepare compacted audio for the transcription model")
    proc.add_argument("video", nargs="?", type=Path, help="Input media file")
    proc.add_argument("--manifest", "-m", type=Path, help="Path to a JSON manifest file")
    proc.add_argument("--no-silence-cut", action="store_true", help="Send the audio uncompacted")
    proc.add_argument("--silence-threshold", type=float, default=-30.0, help="Silence threshold in dB")
    proc.add_argument("--silence-min-duration", type=float, default=10.0, help="Minimum silence duration (seconds)")

    ing = sub.add_parser("ingest", help="Import the model's transcript response")
    ing.add_argument("video", nargs="?", type=Path, help="Input media file")
    ing.add_argument("response", type=Path, help="File holding the raw model response")
    ing.add_argument("--manifest", "-m", type=Path, help="Path to a JSON manifest file")
    ing.add_argument("--context", default="", help="Context given to the model")
    ing.add_argument("--glossary", default="", help="Glossary given to the model")
    ing.add_argument("--speakers", type=int, help="Expected number of speakers")
    ing.add_argument("--align", action="store_true", help="Re-time locally with Whisper")
    ing.add_argument("--align-model", default="base", help="Whisper model size")

    tr = sub.add_parser("translate", help="Import a translation response as a language track")
    tr.add_argument("video", type=Path)
    tr.add_argument("language")
    tr.add_argument("response", type=Path)

    ed = sub.add_parser("edit", help="Edit the stored transcript")
    ed.add_argument("video", type=Path)
    ed.add_argument("--language", help="Edit a translation instead of the original")
    ops = ed.add_subparsers(dest="operation", required=True)
    md = ops.add_parser("merge-down", help="Merge a segment with the next one")
    md.add_argument("index", type=int)
    ms = ops.add_parser("merge", help="Merge the selected segments")
    ms.add_argument("indices", type=int, nargs="+")
    de = ops.add_parser("delete", help="Delete segments")
    de.add_argument("indices", type=int, nargs="+")
    sp = ops.add_parser("split", help="Split a segment in two")
    sp.add_argument("index", type=int)
    sp.add_argument("--at", help="Split time (default: midpoint)")
    rn = ops.add_parser("rename-speaker", help="Rename a speaker everywhere")
    rn.add_argument("old")
    rn.add_argument("new")
    rn.add_argument("--yes", action="store_true", help="Allow merging into an existing speaker")
    ops.add_parser("sort", help="Restore start-time order")

    subs = sub.add_parser("subtitles", help="Write the transcript as subtitles")
    subs.add_argument("video", type=Path)
    subs.add_argument("--format", choices=SUBTITLE_FORMATS, default="srt")
    subs.add_argument("--language", help="Language track (default: original)")
    subs.add_argument("--output", "-o", type=Path, help="Output file path")

    ct = sub.add_parser("cut", help="Render the media cut down to the edited transcript")
    ct.add_argument("video", type=Path)
    ct.add_argument("--output", "-o", type=Path, help="Output file path (default: <stem>_cut<ext>)")
    ct.add_argument("--language", help="Language track whose segments are kept")

    cl = sub.add_parser("clips", help="Export clips described by a model response")
    cl.add_argument("video", nargs="?", type=Path, help="Input media file")
    cl.add_argument("clips", type=Path, help="File holding the clip list (model response or JSON)")
    cl.add_argument("--manifest", "-m", type=Path, help="Path to a JSON manifest file")
    cl.add_argument("--output-dir", "-o", type=Path, help="Directory for exported clips")
    cl.add_argument("--pre-padding", type=float, default=0.0, help="Seconds added before each range")
    cl.add_argument("--post-padding", type=float, default=0.0, help="Seconds added after each range")
    cl.add_argument("--fast", action="store_true", help="Stream-copy single-range clips")
    cl.add_argument("--no-subtitles", action="store_true", help="Skip subtitle sidecars")
    cl.add_argument("--format", choices=SUBTITLE_FORMATS, default="srt", help="Subtitle sidecar format")
    cl.add_argument("--language", help="Language track for subtitles")

    serve = sub.add_parser("serve", help="Launch the web API")
    serve.add_argument("--port", type=int, default=8321, help="Port to listen on")
    serve.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind to")

    return parser


def _manifest(args: argparse.Namespace) -> Manifest:
    if getattr(args, "manifest", None):
        return load_manifest(args.manifest)
    if args.video is None:
        print("Error: provide either a VIDEO argument or --manifest.", file=sys.stderr)
        sys.exit(1)

    m = Manifest(input=args.video, output_dir=args.video.parent / f"{args.video.stem}_clips")
    if args.command == "process":
        m.silence_cut = SilenceCutConfig(
            enabled=not args.no_silence_cut,
            threshold_db=args.silence_threshold,
            min_duration=args.silence_min_duration,
        )
    elif args.command == "ingest":
        m.analysis = AnalysisConfig(context=args.context, glossary=args.glossary, speaker_count=args.speakers)
        m.alignment = AlignmentConfig(enabled=args.align, model=args.align_model)
    elif args.command == "clips":
        m.output_dir = args.output_dir or m.output_dir
        m.captions = CaptionConfig(output_format=args.format)
        m.clip_export = ClipExportConfig(
            pre_padding=args.pre_padding,
            post_padding=args.post_padding,
            fast_mode=args.fast,
            include_subtitles=not args.no_subtitles,
        )
    return m


def _edit(args: argparse.Namespace) -> None:
    op = args.operation
    if op == "merge-down":
        call = ("merge_down", args.index)
    elif op == "merge":
        call = ("merge_selected", args.indices)
    elif op == "delete":
        call = ("delete_many", args.indices)
    elif op == "split":
        call = ("split", args.index, parse_time(args.at, strict=True) if args.at else None)
    elif op == "rename-speaker":
        overlay = engine.require_session(args.video).overlay()
        if args.language:
            overlay.activate(args.language)
        if overlay.get().is_lossy_rename(args.old, args.new) and not args.yes:
            print(
                f"'{args.new}' is already a speaker; renaming would merge them. Re-run with --yes.",
                file=sys.stderr,
            )
            sys.exit(1)
        call = ("rename_speaker", args.old, args.new)
    else:
        call = ("sort",)

    session = engine.apply_edit(args.video, *call, language=args.language)
    print(f"Saved {len(session.segments)} segments.")


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "serve":
        from mediacut.web import create_app
        app = create_app()
        print(f"mediacut web API: http://{args.host}:{args.port}")
        app.run(host=args.host, port=args.port, debug=False)
        return

    try:
        _run(args)
    except (MediaCutError, FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def _run(args: argparse.Namespace) -> None:
    if args.command == "process":
        def on_progress(stage: str, frac: float) -> None:
            print(f"  [{frac:3.0%}] {stage}")

        result = engine.process(_manifest(args), on_progress=on_progress)
        print()
        print(f"Done! Audio for the model: {result.audio_path}")
        print(f"  Duration: {result.duration_original:.1f}s -> {result.duration_compacted:.1f}s")
        if result.silences_removed:
            print(f"  Silences removed: {result.silences_removed}")

    elif args.command == "ingest":
        session = engine.ingest_response(_manifest(args), args.response.read_text(encoding="utf-8"))
        print(f"Stored {len(session.segments)} segments.")

    elif args.command == "translate":
        response = args.response.read_text(encoding="utf-8")
        session, added = engine.import_translation(args.video, args.language, response)
        if added:
            print(f"Added {args.language} ({len(session.translations[args.language])} segments).")
        else:
            print(f"{args.language} already present; kept the existing track.")

    elif args.command == "edit":
        _edit(args)

    elif args.command == "subtitles":
        output = args.output or args.video.with_suffix(f".{args.format}")
        path = engine.write_transcript_subtitles(args.video, output, args.format, args.language)
        print(f"Subtitles: {path}")

    elif args.command == "cut":
        output = args.output or args.video.with_name(f"{args.video.stem}_cut{args.video.suffix}")
        path = engine.cut_transcript(args.video, output, args.language)
        print(f"Cut video: {path}")

    elif args.command == "clips":
        manifest = _manifest(args)
        clips = parse_clips(args.clips.read_text(encoding="utf-8"))

        def on_export(p: ExportProgress) -> None:
            print(f"  [{p.percentage:5.1f}%] {p.message}")

        result = engine.export_clips(manifest, clips, language=args.language, on_progress=on_export)
        print()
        print(f"Exported {len(result.outputs)} clips to {manifest.output_dir}")
        for path in result.outputs:
            print(f"  {path.name}")


if __name__ == "__main__":
    main()
