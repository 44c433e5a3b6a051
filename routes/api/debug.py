# routes/api/debug.py
"""
Upload relay diagnostics.
"""

from flask import jsonify, request

from services.onboarding import probe_redirects
from . import api_bp
from .helpers import get_http


@api_bp.route('/debug/filebin')
def debug_filebin():
    """Compare how a FileBin URL redirects for requests and curl."""
    url = request.args.get('url', '').strip()
    if not url:
        return jsonify({'error': 'missing-url', 'detail': 'Pass ?url=<filebin url>'}), 400
    return jsonify(probe_redirects(url, http=get_http()))
