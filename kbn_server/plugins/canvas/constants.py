CANVAS_TYPE = "canvas-workpad"
CANVAS_APP = "canvas"
API_ROUTE = "/api/canvas"
API_ROUTE_WORKPAD = f"{API_ROUTE}/workpad"
