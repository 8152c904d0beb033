"""Emergency site — the stock routing policy, loaded from routing.toml.

The policy file declares the same rules signpost ships with: requests
flagged ``x-redirected: true`` by the edge are served the home page,
``/emergency-direct`` serves the emergency page in place, and
``/emergency`` and ``/emergency-tool`` redirect there temporarily.

Run:
    python app.py

Inspect:
    signpost rules app:app
    signpost resolve app:app /emergency-tool
"""

from pathlib import Path

from signpost import App, AppConfig, Request, RoutingPolicy

POLICY_FILE = Path(__file__).parent / "routing.toml"

app = App(AppConfig.from_env(), policy=RoutingPolicy.from_file(POLICY_FILE))


@app.route("/")
def index():
    return "<h1>Home</h1>"


@app.route("/emergency-access/emergency")
def emergency(request: Request):
    via = "rewrite" if request.is_rewritten else "direct"
    return f"<h1>Emergency access</h1><p>via {via}</p>"


@app.error(404)
def not_found(request: Request):
    return f"Nothing at {request.url}"


if __name__ == "__main__":
    app.run(app_path="app:app")
