"""
Media Motion Service - Composition assembly and preset patching for Remotion.
Port: 6008
"""
import asyncio
from datetime import datetime, timezone
from typing import Optional

from flask import Flask, jsonify, request
from loguru import logger
from pydantic import ValidationError

from config.settings import SERVICE_NAME, SERVICE_PORT, SERVICE_VERSION
from mediamotion.composition import CompositionAssembler, CompositionRoot, default_registry
from mediamotion.errors import AssemblyAborted, MalformedPresetError, PresetNotFoundError
from mediamotion.presets import PresetPatch, PresetSession, apply_patch, default_preset_registry

app = Flask(__name__)

PRESETS = default_preset_registry()

_assembler: Optional[CompositionAssembler] = None


def get_assembler() -> CompositionAssembler:
    """Get the shared assembler instance."""
    global _assembler
    if _assembler is None:
        _assembler = CompositionAssembler(registry=default_registry())
    return _assembler


@app.route("/health", methods=["GET"])
def health():
    """Health check endpoint."""
    return jsonify({
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat()
    })


@app.route("/api/presets", methods=["GET"])
def list_presets():
    """List the built-in presets."""
    presets = [metadata.to_dict() for metadata in PRESETS.list_metadata()]
    return jsonify({"status": "success", "presets": presets, "count": len(presets)})


@app.route("/api/presets/apply", methods=["POST"])
def apply_preset_patch():
    """Apply one preset patch to a composition root."""
    data = request.get_json(silent=True) or {}
    if "patch" not in data:
        return jsonify({"error": "patch required"}), 400

    try:
        root = CompositionRoot.from_dict(data.get("root") or {})
        patch = PresetPatch.model_validate(data["patch"])
        patched = apply_patch(root, patch)
    except ValidationError as e:
        return jsonify({"status": "error", "error": str(e)}), 400
    except MalformedPresetError as e:
        return jsonify({"status": "error", "error": str(e)}), 422

    return jsonify({"status": "success", "root": patched.to_dict()})


@app.route("/api/composition/assemble", methods=["POST"])
def assemble_composition():
    """Resolve durations and compute render metadata for a composition root."""
    data = request.get_json(silent=True)
    if not data:
        return jsonify({"error": "composition root required"}), 400

    try:
        root = CompositionRoot.from_dict(data)
    except ValidationError as e:
        return jsonify({"status": "error", "error": str(e)}), 400

    try:
        metadata = asyncio.run(get_assembler().assemble(root))
    except AssemblyAborted as e:
        return jsonify({"status": "error", "error": str(e)}), 499

    return jsonify({"status": "success", **metadata.to_dict()})


@app.route("/api/composition/from-presets", methods=["POST"])
def composition_from_presets():
    """Build a composition from a preset sequence, then assemble it."""
    data = request.get_json(silent=True) or {}
    items = data.get("presets")
    if not items or not isinstance(items, list):
        return jsonify({"error": "presets array required"}), 400

    session = PresetSession(registry=PRESETS)
    try:
        root = session.apply_all(items)
    except ValidationError as e:
        return jsonify({"status": "error", "error": str(e)}), 400
    except PresetNotFoundError as e:
        return jsonify({"status": "error", "error": str(e)}), 404

    try:
        metadata = asyncio.run(get_assembler().assemble(root))
    except AssemblyAborted as e:
        return jsonify({"status": "error", "error": str(e)}), 499

    return jsonify({
        "status": "success",
        "applied": session.applied,
        "skipped": session.skipped,
        **metadata.to_dict()
    })


if __name__ == "__main__":
    logger.info(f"{SERVICE_NAME} starting on port {SERVICE_PORT}")
    app.run(host="0.0.0.0", port=SERVICE_PORT, debug=True)
