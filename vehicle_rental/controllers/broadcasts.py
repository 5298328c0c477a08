import json

from flask import Blueprint, Response, current_app, jsonify, request, stream_with_context

from ..models.db import db
from ..services.broadcast_service import BroadcastService
from ..services.common import to_int_safe
from ..services.notifications import audience_for
from ..utils.decorators import current_principal, login_required

bp = Blueprint("broadcasts", __name__)

HEARTBEAT_SECONDS = 15


@bp.get("/api/broadcasts")
@login_required
def recent_broadcasts():
    limit = to_int_safe(request.args.get("limit")) or 20
    rows = BroadcastService(db.session).recent(limit, audience=audience_for(current_principal().role))
    return jsonify(success=True, broadcasts=[b.to_event() for b in rows])


@bp.get("/broadcasts/stream")
@login_required
def stream():
    """Server-Sent Events feed of admin broadcasts for this session's audience."""
    hub = current_app.extensions["broadcast_hub"]
    sub = hub.subscribe(audience_for(current_principal().role))

    def events():
        try:
            yield ": connected\n\n"
            while True:
                event = sub.get(timeout=HEARTBEAT_SECONDS)
                if event is None:
                    yield ": keep-alive\n\n"
                    continue
                yield f"event: broadcast\ndata: {json.dumps(event)}\n\n"
        finally:
            hub.unsubscribe(sub)

    return Response(stream_with_context(events()), mimetype="text/event-stream",
                    headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"})
