"""Flask routes for the equation solving API.

Submissions (``POST /api/extract`` and ``POST /api/equations``) use the
document format described in submission.py.
"""

from flask import jsonify, request, send_file

from .rendering import render_stroke_set_png
from .submission import parse_submission
from .web import app, get_pipeline


@app.route('/api/extract', methods=['POST'])
def api_extract():
    try:
        region, strokes = parse_submission(request.get_json(silent=True))
    except ValueError as e:
        return jsonify(error=str(e)), 400
    stroke_set = get_pipeline().extractor.extract(strokes, region)
    return jsonify(region=region.to_dict(), paths=stroke_set.to_list())


@app.route('/api/equations', methods=['POST'])
def api_submit():
    try:
        region, strokes = parse_submission(request.get_json(silent=True))
    except ValueError as e:
        return jsonify(error=str(e)), 400
    request_id = get_pipeline().submit(region, strokes)
    return jsonify(id=request_id), 202


@app.route('/api/equations')
def api_list():
    snapshot = get_pipeline().store.snapshot()
    return jsonify(equations=[r.to_dict() for r in snapshot])


@app.route('/api/equations', methods=['DELETE'])
def api_clear():
    removed = get_pipeline().store.clear()
    return jsonify(removed=removed)


@app.route('/api/equations/<request_id>')
def api_get(request_id):
    found = get_pipeline().store.get(request_id)
    if found is None:
        return jsonify(error="Request not found"), 404
    return jsonify(found.to_dict())


@app.route('/api/equations/<request_id>/cancel', methods=['POST'])
def api_cancel(request_id):
    pipeline = get_pipeline()
    if request_id not in pipeline.store:
        return jsonify(error="Request not found"), 404
    return jsonify(cancelled=pipeline.cancel(request_id))


@app.route('/api/equations/<request_id>/strokes.png')
def api_strokes_preview(request_id):
    found = get_pipeline().store.get(request_id)
    if found is None:
        return "Request not found", 404
    size = request.args.get('size', 224, type=int)
    size = min(max(size, 32), 1024)
    return send_file(render_stroke_set_png(found.strokes, size), mimetype='image/png')
