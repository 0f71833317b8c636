"""Web API routes for mediacut."""

import json
import logging
import queue
import subprocess
import threading
import uuid
from pathlib import Path

from flask import (
    Blueprint,
    Response,
    current_app,
    jsonify,
    request,
    send_file,
)

from mediacut import engine
from mediacut.editors.captions import SUBTITLE_FORMATS
from mediacut.errors import ExportError
from mediacut.ingest import normalize_clip, parse_clips
from mediacut.manifest import (
    AlignmentConfig,
    AnalysisConfig,
    CaptionConfig,
    ClipExportConfig,
    Manifest,
    SilenceCutConfig,
)
from mediacut.models import ExportProgress, TranscriptSegment
from mediacut.overlay import ORIGINAL
from mediacut.session import load_session
from mediacut.timecode import parse_time

logger = logging.getLogger(__name__)

bp = Blueprint("web", __name__)

# In-memory job store: job_id -> job dict
_jobs: dict[str, dict] = {}


def _get_job(job_id: str) -> dict | None:
    return _jobs.get(job_id)


def _not_found():
    return jsonify({"error": "Job not found"}), 404


def _manifest(job: dict, config: dict | None = None) -> Manifest:
    config = config or {}
    sc = config.get("silence_cut", {})
    ce = config.get("clip_export", {})
    return Manifest(
        input=job["input_path"],
        output_dir=job["dir"] / "clips",
        silence_cut=SilenceCutConfig(
            enabled=sc.get("enabled", True),
            threshold_db=float(sc.get("threshold_db", -30.0)),
            min_duration=float(sc.get("min_duration", 10.0)),
            padding=float(sc.get("padding", 0.05)),
        ),
        captions=CaptionConfig(output_format=config.get("subtitle_format", "srt")),
        clip_export=ClipExportConfig(
            pre_padding=float(ce.get("pre_padding", 0.0)),
            post_padding=float(ce.get("post_padding", 0.0)),
            fast_mode=bool(ce.get("fast_mode", False)),
            include_subtitles=bool(ce.get("include_subtitles", True)),
        ),
    )


def _start_task(job: dict, flag: str, work) -> None:
    """Run ``work(progress_queue)`` on a daemon thread, clearing ``flag`` after."""
    progress_queue: queue.Queue = queue.Queue()
    job["progress_queue"] = progress_queue
    job[flag] = True
    job["error"] = None

    def run():
        try:
            job["task_result"] = work(progress_queue)
        except subprocess.CalledProcessError as e:
            stderr = e.stderr if isinstance(e.stderr, str) else (e.stderr or b"").decode(errors="replace")
            job["error"] = f"ffmpeg failed: {stderr[-500:]}" if stderr else str(e)
        except Exception as e:
            logger.exception("Background %s task failed", flag)
            job["error"] = str(e)
        finally:
            job[flag] = False
            progress_queue.put(None)  # sentinel

    threading.Thread(target=run, daemon=True).start()


@bp.route("/api/upload", methods=["POST"])
def upload():
    if "file" not in request.files:
        return jsonify({"error": "No file provided"}), 400

    f = request.files["file"]
    if not f.filename:
        return jsonify({"error": "Empty filename"}), 400

    job_id = uuid.uuid4().hex[:12]
    job_dir = Path(current_app.config["WORK_DIR"]) / job_id
    job_dir.mkdir(parents=True, exist_ok=True)

    ext = Path(f.filename).suffix or ".mp4"
    input_path = job_dir / f"input{ext}"
    f.save(input_path)

    _jobs[job_id] = {
        "dir": job_dir,
        "input_path": input_path,
        "filename": f.filename,
        "status": "uploaded",
        "language": ORIGINAL,
        "processing": False,
        "translating": False,
        "exporting": False,
    }

    return jsonify({"job_id": job_id, "filename": f.filename})


@bp.route("/api/jobs/<job_id>/process", methods=["POST"])
def start_process(job_id: str):
    job = _get_job(job_id)
    if job is None:
        return _not_found()
    if job["processing"]:
        return jsonify({"error": "Job is already processing"}), 409

    manifest = _manifest(job, request.get_json(silent=True))
    job["status"] = "processing"

    def work(progress_queue: queue.Queue) -> dict:
        def on_progress(stage: str, frac: float):
            progress_queue.put({"stage": stage, "progress": round(frac, 3)})

        try:
            result = engine.process(manifest, on_progress=on_progress)
        except Exception:
            job["status"] = "error"
            raise
        job["result"] = {
            "audio_path": str(result.audio_path),
            "duration_original": result.duration_original,
            "duration_compacted": result.duration_compacted,
            "silences_removed": result.silences_removed,
        }
        job["status"] = "done"
        return job["result"]

    _start_task(job, "processing", work)
    return jsonify({"status": "started"})


@bp.route("/api/jobs/<job_id>/progress")
def progress_stream(job_id: str):
    job = _get_job(job_id)
    if job is None:
        return _not_found()

    q = job.get("progress_queue")
    if q is None:
        return jsonify({"error": "No task in progress"}), 409

    def generate():
        while True:
            try:
                msg = q.get(timeout=120)
            except queue.Empty:
                yield "data: {\"error\": \"timeout\"}\n\n"
                break
            if msg is None:
                if job.get("error"):
                    data = json.dumps({"error": job["error"]})
                else:
                    data = json.dumps({
                        "stage": "complete",
                        "progress": 1.0,
                        "result": job.get("task_result"),
                    })
                yield f"data: {data}\n\n"
                break
            yield f"data: {json.dumps(msg)}\n\n"

    return Response(generate(), mimetype="text/event-stream")


@bp.route("/api/jobs/<job_id>/result")
def download_result(job_id: str):
    """The compacted audio to hand to the transcription model."""
    job = _get_job(job_id)
    if job is None:
        return _not_found()
    if job["status"] != "done":
        return jsonify({"error": "Job not complete"}), 409

    return send_file(Path(job["result"]["audio_path"]), as_attachment=False)


@bp.route("/api/jobs/<job_id>/status")
def job_status(job_id: str):
    job = _get_job(job_id)
    if job is None:
        return _not_found()

    resp = {
        "status": job["status"],
        "filename": job.get("filename"),
        "language": job["language"],
        "translating": job["translating"],
        "exporting": job["exporting"],
    }
    if job["status"] == "done":
        resp["result"] = job.get("result")
    if job.get("error"):
        resp["error"] = job["error"]
    return jsonify(resp)


def _transcript_payload(job: dict) -> dict | None:
    session = load_session(job["input_path"])
    if session is None:
        return None
    overlay = session.overlay()
    store = overlay.get(job["language"])
    return {
        "language": job["language"],
        "languages": overlay.languages(),
        "segments": store.to_list(),
        "speakers": store.speakers(),
        "context": session.context,
        "glossary": session.glossary,
        "speakerCount": session.speaker_count,
        "removeFillerWords": session.remove_filler_words,
    }


@bp.route("/api/jobs/<job_id>/transcript")
def get_transcript(job_id: str):
    job = _get_job(job_id)
    if job is None:
        return _not_found()

    payload = _transcript_payload(job)
    if payload is None:
        return jsonify({"error": "No transcript yet"}), 404
    return jsonify(payload)


def _busy(job: dict, *flags: str):
    """409 response while any of ``flags`` is in flight, else None."""
    for flag in flags:
        if job.get(flag):
            return jsonify({"error": f"Job is {flag}; try again when it finishes"}), 409
    return None


@bp.route("/api/jobs/<job_id>/transcript", methods=["POST"])
def ingest_transcript(job_id: str):
    """Import the raw analysis response returned by the model."""
    job = _get_job(job_id)
    if job is None:
        return _not_found()
    # the cut plan on disk only matches the audio once processing is done
    busy = _busy(job, "processing", "exporting")
    if busy:
        return busy

    data = request.get_json(silent=True) or {}
    if "response" not in data:
        return jsonify({"error": "No response provided"}), 400

    al = data.get("alignment", {})
    manifest = _manifest(job)
    manifest.analysis = AnalysisConfig(
        context=data.get("context", ""),
        glossary=data.get("glossary", ""),
        speaker_count=data.get("speaker_count"),
        remove_filler_words=bool(data.get("remove_filler_words", False)),
    )
    manifest.alignment = AlignmentConfig(
        enabled=bool(al.get("enabled", False)),
        model=al.get("model", "base"),
        language=al.get("language"),
    )

    engine.ingest_response(manifest, data["response"])

    # a fresh transcript has no translations
    job["language"] = ORIGINAL
    return jsonify(_transcript_payload(job))


def _edit_call(operation: str, data: dict) -> tuple:
    if operation == "edit":
        return (data["index"], TranscriptSegment.from_dict(data["segment"]))
    if operation in ("delete", "merge_down"):
        return (data["index"],)
    if operation in ("delete_many", "merge_selected"):
        return (data["indices"],)
    if operation == "split":
        at = data.get("at")
        return (data["index"], parse_time(at, strict=True) if at is not None else None)
    if operation == "rename_speaker":
        return (data["old"], data["new"])
    return ()


@bp.route("/api/jobs/<job_id>/edit", methods=["POST"])
def edit_transcript(job_id: str):
    job = _get_job(job_id)
    if job is None:
        return _not_found()
    busy = _busy(job, "processing", "exporting")
    if busy:
        return busy

    data = request.get_json(silent=True) or {}
    operation = data.get("operation", "")
    language = data.get("language") or job["language"]

    try:
        args = _edit_call(operation, data)
        if operation == "rename_speaker" and not data.get("force"):
            store = engine.require_session(job["input_path"]).overlay().get(language)
            if store.is_lossy_rename(*args):
                return jsonify({
                    "error": f"'{args[1]}' is already a speaker",
                    "confirm": True,
                }), 409
        engine.apply_edit(job["input_path"], operation, *args, language=language)
    except KeyError as e:
        return jsonify({"error": f"Missing field: {e.args[0]}"}), 400
    except ValueError as e:
        logger.warning("Rejected %s edit on job %s: %s", operation, job_id, e)
        return jsonify({"error": str(e)}), 400

    return jsonify(_transcript_payload(job))


@bp.route("/api/jobs/<job_id>/language", methods=["POST"])
def select_language(job_id: str):
    """Switch the displayed track; reports when a translation is still needed."""
    job = _get_job(job_id)
    if job is None:
        return _not_found()

    language = (request.get_json(silent=True) or {}).get("language") or ORIGINAL
    session = load_session(job["input_path"])
    if session is None:
        return jsonify({"error": "No transcript yet"}), 404

    if not session.overlay().activate(language):
        return jsonify({"language": job["language"], "needs_translation": True})

    job["language"] = language
    return jsonify({"language": language, "needs_translation": False})


@bp.route("/api/jobs/<job_id>/translations", methods=["POST"])
def add_translation(job_id: str):
    job = _get_job(job_id)
    if job is None:
        return _not_found()
    busy = _busy(job, "translating", "processing", "exporting")
    if busy:
        return busy

    data = request.get_json(silent=True) or {}
    if not data.get("language") or "response" not in data:
        return jsonify({"error": "language and response are required"}), 400

    job["translating"] = True
    try:
        _, added = engine.import_translation(job["input_path"], data["language"], data["response"])
    finally:
        job["translating"] = False

    job["language"] = data["language"]
    payload = _transcript_payload(job)
    payload["added"] = added
    return jsonify(payload)


@bp.route("/api/jobs/<job_id>/subtitles")
def download_subtitles(job_id: str):
    job = _get_job(job_id)
    if job is None:
        return _not_found()

    fmt = request.args.get("format", "srt")
    if fmt not in SUBTITLE_FORMATS:
        return jsonify({"error": f"Unsupported format: {fmt}"}), 400
    language = request.args.get("language") or job["language"]

    output = job["dir"] / f"subtitles_{language}.{fmt}"
    engine.write_transcript_subtitles(job["input_path"], output, fmt, language)
    return send_file(output, as_attachment=True)


@bp.route("/api/jobs/<job_id>/cut", methods=["POST"])
def start_cut(job_id: str):
    """Render the upload cut down to the edited transcript's segments."""
    job = _get_job(job_id)
    if job is None:
        return _not_found()
    busy = _busy(job, "processing", "exporting")
    if busy:
        return busy
    engine.require_session(job["input_path"])

    language = (request.get_json(silent=True) or {}).get("language") or job["language"]
    output_path = job["dir"] / f"cut{job['input_path'].suffix}"

    def work(progress_queue: queue.Queue) -> dict:
        progress_queue.put({"stage": "Cutting", "progress": 0.0})
        path = engine.cut_transcript(job["input_path"], output_path, language)
        job["cut"] = str(path)
        return {"cut": path.name}

    _start_task(job, "exporting", work)
    return jsonify({"status": "started"})


@bp.route("/api/jobs/<job_id>/cut")
def download_cut(job_id: str):
    job = _get_job(job_id)
    if job is None:
        return _not_found()
    if not job.get("cut"):
        return jsonify({"error": "No cut rendered yet"}), 409
    return send_file(Path(job["cut"]), as_attachment=True)


@bp.route("/api/jobs/<job_id>/clips/export", methods=["POST"])
def export_clips(job_id: str):
    job = _get_job(job_id)
    if job is None:
        return _not_found()
    busy = _busy(job, "processing", "exporting")
    if busy:
        return busy

    data = request.get_json(silent=True) or {}
    if "response" in data:
        clips = parse_clips(data["response"])
    else:
        clips = [normalize_clip(c) for c in data.get("clips", [])]
    if not clips:
        return jsonify({"error": "No clips to export"}), 400

    manifest = _manifest(job, data)
    language = data.get("language") or job["language"]

    def work(progress_queue: queue.Queue) -> dict:
        def on_progress(p: ExportProgress):
            progress_queue.put({
                "stage": p.message,
                "progress": round(p.percentage / 100.0, 3),
                "clip": p.current_clip,
                "total": p.total_clips,
            })

        try:
            result = engine.export_clips(manifest, clips, language=language, on_progress=on_progress)
        except ExportError as e:
            logger.error("Clip export for job %s failed: %s", job_id, e)
            raise
        job["clips"] = [str(p) for p in result.outputs]
        return {"clips": [p.name for p in result.outputs]}

    _start_task(job, "exporting", work)
    return jsonify({"status": "started", "clips": len(clips)})


@bp.route("/api/jobs/<job_id>/clips/<int:index>")
def download_clip(job_id: str, index: int):
    job = _get_job(job_id)
    if job is None:
        return _not_found()

    clips = job.get("clips") or []
    if not 0 <= index < len(clips):
        return jsonify({"error": "Clip not found"}), 404
    return send_file(Path(clips[index]), as_attachment=True)
