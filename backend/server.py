import os
import sys
import time
import threading

# Ensure backend/ is on sys.path so sibling imports work
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException
from dotenv import load_dotenv

from normalizer import normalize_code
from data_loader import load_data
from reconciler import reconcile
from eligibility import check_can_take
from advisor import result_to_payload, run_advisor
from batch import STATUS_SUCCESS, run_batch
from policy import MAX_BATCH_SIZE, RankingPolicy, default_credit_ceiling

load_dotenv()

app = Flask(__name__)

# ── Paths ─────────────────────────────────────────────────────────────────────
BACKEND_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(BACKEND_DIR)
_DEFAULT_DATA_PATH = os.path.join(PROJECT_ROOT, "data")
_env_data_path = os.environ.get("DATA_PATH")
if not _env_data_path:
    DATA_PATH = _DEFAULT_DATA_PATH
elif not os.path.isabs(_env_data_path):
    DATA_PATH = os.path.join(PROJECT_ROOT, _env_data_path)
else:
    DATA_PATH = _env_data_path
_data_lock = threading.Lock()
_data_mtime = None


def _env_float(name: str, default: float, minimum: float = 0.0) -> float:
    raw = os.environ.get(name, "")
    try:
        return max(minimum, float(raw))
    except (TypeError, ValueError):
        return default


_SLOW_REQUEST_LOG_MS = _env_float("SLOW_REQUEST_LOG_MS", 750.0, minimum=0.0)
_ranking_policy = RankingPolicy.from_env()


def _data_file_mtime(path: str):
    try:
        if os.path.isdir(path):
            mtimes = [
                os.path.getmtime(os.path.join(path, f))
                for f in os.listdir(path)
                if f.endswith(".csv")
            ]
            return max(mtimes) if mtimes else None
        return os.path.getmtime(path)
    except OSError:
        return None


# ── Startup data load ──────────────────────────────────────────────────────────
def _load_or_exit(path: str) -> dict:
    """Load the catalog at startup; a broken or unreadable catalog is fatal."""
    try:
        return load_data(path)
    except ValueError as exc:
        # CatalogIntegrityError, or pandas rejecting the workbook (e.g. no "courses" sheet).
        print(f"[FATAL] {exc}", file=sys.stderr)
        sys.exit(1)


try:
    _data = _load_or_exit(DATA_PATH)
    _data_mtime = _data_file_mtime(DATA_PATH)
    print(f"[OK] Loaded {len(_data['catalog'])} courses from {DATA_PATH}")
except FileNotFoundError:
    # Stale DATA_PATH: fall back to the bundled catalog.
    if DATA_PATH != _DEFAULT_DATA_PATH and os.path.exists(_DEFAULT_DATA_PATH):
        print(
            f"[WARN] DATA_PATH not found ({DATA_PATH}); "
            f"falling back to default catalog ({_DEFAULT_DATA_PATH}).",
            file=sys.stderr,
        )
        DATA_PATH = _DEFAULT_DATA_PATH
        _data = _load_or_exit(DATA_PATH)
        _data_mtime = _data_file_mtime(DATA_PATH)
        print(f"[OK] Loaded {len(_data['catalog'])} courses from {DATA_PATH}")
    else:
        print(f"[FATAL] Data file not found: {DATA_PATH}", file=sys.stderr)
        sys.exit(1)


def _reload_data_if_changed(force: bool = False) -> bool:
    """
    Hot-reload the catalog when DATA_PATH changes on disk.

    Returns True when a reload occurred, else False. A catalog that fails to
    load or validate leaves the previous one in place.
    """
    global _data, _data_mtime

    candidate_mtime = _data_file_mtime(DATA_PATH)
    if not force:
        if candidate_mtime is None:
            return False
        if _data_mtime is not None and candidate_mtime <= _data_mtime:
            return False

    with _data_lock:
        latest_mtime = _data_file_mtime(DATA_PATH)
        if not force:
            if latest_mtime is None:
                return False
            if _data_mtime is not None and latest_mtime <= _data_mtime:
                return False

        try:
            new_data = load_data(DATA_PATH)
        except (OSError, ValueError) as exc:
            print(f"[WARN] Data reload failed; keeping previous catalog: {exc}", file=sys.stderr)
            return False

        _data = new_data
        _data_mtime = latest_mtime if latest_mtime is not None else candidate_mtime
        print(f"[OK] Reloaded {len(new_data['catalog'])} courses from {DATA_PATH}")
        return True


def _refresh_data_if_needed() -> None:
    try:
        _reload_data_if_changed()
    except OSError as exc:
        print(f"[WARN] Data reload check failed: {exc}", file=sys.stderr)


# -- Security headers ------------------------------------------------------
@app.before_request
def _start_request_timer():
    g._request_start_time = time.perf_counter()


@app.after_request
def _add_security_headers(response):
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "same-origin"

    started = getattr(g, "_request_start_time", None)
    if started is not None:
        duration_ms = (time.perf_counter() - started) * 1000.0
        if duration_ms >= _SLOW_REQUEST_LOG_MS:
            endpoint = request.endpoint or "unknown"
            print(
                f"[SLOW] {request.method} {request.path} "
                f"endpoint={endpoint} status={response.status_code} duration_ms={duration_ms:.1f}"
            )
    return response


# -- Health endpoint --------------------------------------------------------
@app.route("/health", methods=["GET"])
def health_endpoint():
    return jsonify({
        "status": "ok",
        "version": "1.0.0",
        "catalog_courses": len(_data["catalog"]) if _data else 0,
    })


# -- Input validation ------------------------------------------------------
def _error(error_code: str, message: str, status: int):
    return jsonify({
        "mode": "error",
        "error": {"error_code": error_code, "message": message},
    }), status


def _parse_credit_ceiling(body):
    """Returns (ceiling, error_message)."""
    raw = body.get("credit_ceiling")
    if raw in (None, ""):
        return default_credit_ceiling(), None
    try:
        if isinstance(raw, bool) or float(raw) != int(float(raw)):
            raise ValueError
        ceiling = int(float(raw))
        if ceiling < 0:
            raise ValueError
    except (TypeError, ValueError, OverflowError):
        return None, "credit_ceiling must be a non-negative integer."
    return ceiling, None


def _coerce_course_records(raw_value):
    """Accept a list of records, or a comma/newline separated string of codes."""
    if raw_value is None:
        return []
    if isinstance(raw_value, str):
        return [t.strip() for t in raw_value.replace(";", ",").replace("\n", ",").split(",") if t.strip()]
    if isinstance(raw_value, list):
        return raw_value
    return None


def _validate_advise_body(body):
    """Returns (error_code, message) on invalid input, (None, None) on success."""
    if not isinstance(body, dict):
        return "INVALID_INPUT", "Request body must be a JSON object."
    courses = body.get("courses", body.get("completed_courses"))
    if _coerce_course_records(courses) is None:
        return "INVALID_INPUT", "courses must be a list of course records or a comma-separated string."
    _, ceiling_err = _parse_credit_ceiling(body)
    if ceiling_err:
        return "INVALID_INPUT", ceiling_err
    return None, None


def _student_identity(body):
    name = body.get("student_name", body.get("studentName", "")) or ""
    student_id = body.get("student_id", body.get("studentId", "")) or ""
    return str(name), str(student_id)


# ── 500 handler ────────────────────────────────────────────────────────────────
@app.errorhandler(Exception)
def handle_unexpected_error(e):
    if isinstance(e, HTTPException):
        return e
    print(f"[ERROR] {request.method} {request.path}: {e!r}", file=sys.stderr)
    return jsonify({
        "mode": "error",
        "error": {
            "error_code": "SERVER_ERROR",
            "message": "An unexpected server error occurred.",
        },
    }), 500


# ── Routes ─────────────────────────────────────────────────────────────────────
def get_catalog():
    _refresh_data_if_needed()
    if not _data:
        return jsonify({"error": "Data not loaded"}), 500
    catalog = _data["catalog"]
    courses = [
        {
            "code": c.code,
            "name": c.name,
            "credits": c.credits,
            "prerequisites": sorted(c.prerequisites),
            "unlock_count": catalog.unlock_count(c.code),
        }
        for c in catalog.courses
    ]
    return jsonify({
        "courses": courses,
        "equivalency_rules": len(catalog.rules),
        "total_credits": catalog.total_credits(),
        "default_credit_ceiling": default_credit_ceiling(),
    })


def advise():
    _refresh_data_if_needed()
    if not _data:
        return _error("SERVER_ERROR", "Data not loaded.", 500)

    body = request.get_json(force=True, silent=True)
    err_code, err_msg = _validate_advise_body(body)
    if err_code:
        return _error(err_code, err_msg, 400)

    credit_ceiling, _ = _parse_credit_ceiling(body)
    student_name, student_id = _student_identity(body)
    records = _coerce_course_records(body.get("courses", body.get("completed_courses")))

    catalog = _data["catalog"]
    result = run_advisor(
        records,
        catalog,
        student_name=student_name,
        student_id=student_id,
        credit_ceiling=credit_ceiling,
        policy=_ranking_policy,
    )
    response = {"mode": "advise"}
    response.update(result_to_payload(result, catalog))
    return jsonify(response)


def advise_batch():
    _refresh_data_if_needed()
    if not _data:
        return _error("SERVER_ERROR", "Data not loaded.", 500)

    body = request.get_json(force=True, silent=True)
    if not isinstance(body, dict):
        return _error("INVALID_INPUT", "Request body must be a JSON object.", 400)
    transcripts = body.get("transcripts")
    if not isinstance(transcripts, list) or not transcripts:
        return _error("INVALID_INPUT", "transcripts must be a non-empty list.", 400)
    if len(transcripts) > MAX_BATCH_SIZE:
        return _error("INVALID_INPUT", f"At most {MAX_BATCH_SIZE} transcripts per batch.", 400)
    credit_ceiling, ceiling_err = _parse_credit_ceiling(body)
    if ceiling_err:
        return _error("INVALID_INPUT", ceiling_err, 400)

    catalog = _data["catalog"]
    items = run_batch(transcripts, catalog, credit_ceiling=credit_ceiling, policy=_ranking_policy)

    results = []
    for item in items:
        entry = {
            "slot": item.slot,
            "student_name": item.student_name,
            "status": item.status,
            "error": item.error,
            "data": None,
        }
        if item.status == STATUS_SUCCESS:
            entry["data"] = result_to_payload(item.result, catalog)
        results.append(entry)

    succeeded = sum(1 for r in results if r["status"] == STATUS_SUCCESS)
    if succeeded < len(results):
        print(f"[WARN] Batch finished with {len(results) - succeeded} failed transcript(s)")
    return jsonify({
        "mode": "batch",
        "succeeded": succeeded,
        "failed": len(results) - succeeded,
        "results": results,
    })


def can_take_endpoint():
    """Standalone eligibility check for a single course. Does not rank or bundle."""
    _refresh_data_if_needed()
    if not _data:
        return jsonify({"mode": "can_take", "error": "Data not loaded."}), 500

    body = request.get_json(force=True, silent=True)
    if not isinstance(body, dict) or not body:
        return jsonify({"mode": "can_take", "error": "Invalid JSON body."}), 400

    requested_course_raw = str(body.get("requested_course") or "").strip()
    if not requested_course_raw:
        return jsonify({"mode": "can_take", "error": "requested_course is required."}), 400

    records = _coerce_course_records(body.get("courses", body.get("completed_courses")))
    if records is None:
        return jsonify({"mode": "can_take", "error": "courses must be a list or a string."}), 400

    catalog = _data["catalog"]
    requested_course = normalize_code(requested_course_raw) or requested_course_raw
    progress = reconcile(records, catalog)
    result = check_can_take(requested_course, progress, catalog)

    response_payload = {"mode": "can_take", "requested_course": requested_course}
    response_payload.update(result)
    return jsonify(response_payload)


app.add_url_rule("/api/health", endpoint="api_health", view_func=health_endpoint, methods=["GET"])
app.add_url_rule("/api/catalog", endpoint="api_catalog", view_func=get_catalog, methods=["GET"])
app.add_url_rule("/api/advise", endpoint="api_advise", view_func=advise, methods=["POST"])
app.add_url_rule("/api/advise/batch", endpoint="api_advise_batch", view_func=advise_batch, methods=["POST"])
app.add_url_rule("/api/can-take", endpoint="api_can_take", view_func=can_take_endpoint, methods=["POST"])


# -- API catch-all (404 for unknown /api/* routes) -------------------
@app.route("/api/<path:rest>", methods=["GET", "POST", "PUT", "DELETE", "PATCH"])
def api_catch_all(rest):
    return jsonify({"error": f"/api/{rest} not found"}), 404


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    debug = os.environ.get("FLASK_DEBUG", "1") == "1"
    app.run(host="0.0.0.0", port=port, debug=debug)
