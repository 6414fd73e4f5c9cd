# zarfkit

Helpers for delivering software into disconnected environments: JSON patch
operations and a mutating admission webhook server, archive tools, and the
checks behind creating, inspecting, connecting to and initialising packages.

## Install

```
pip install .
```

## Modules

- `zarfkit.config` – constants, the `ZarfState` dataclasses (`state_from_dict`),
  architecture lookup (`get_arch`), registry address (`get_registry`), cache path
  (`get_abs_cache_path`) and the list of components being deployed.
- `zarfkit.operations` – `PatchOperation` and the `add_`, `remove_`, `replace_`,
  `copy_` and `move_patch_operation` builders; `AdmissionRequest`, `Result` and
  `Hook`, which runs the handler bound to a request's operation.
- `zarfkit.webhook` – `AdmissionHandler` turns an admission review into a review
  response with a base64 JSON patch; `WebhookRouter`, `healthz`, `new_server`
  and `start_webhook` (TLS, stops on SIGINT or SIGTERM).
- `zarfkit.tools` – `archive_compress` / `archive_decompress` for `.tar`,
  `.tar.gz`, `.tar.bz2`, `.tar.xz`, `.tar.zst` and `.zip`; `clear_cache`;
  `get_git_password`.
- `zarfkit.prepare` – `compute_sha256` of a file or http(s) URL,
  `patch_git_file`, and `generate_config_file` (TOML, JSON or YAML by extension).
- `zarfkit.package_cmd` – `is_clean_cache_path`, `is_package_tarball`,
  `read_package_name` from a `.tar.zst` package, `suggest_packages`,
  `choose_package` and `deployed_packages_table`.
- `zarfkit.connect` – `ConnectOptions` and `connect`, which drives a tunnel
  object supplied by the caller.
- `zarfkit.initialize` – `InitOptions`, `validate_init_flags`,
  `init_download_url` and `find_init_package`.

## Examples

Building a JSON patch operation:

```python
from zarfkit.operations import replace_patch_operation

op = replace_patch_operation("/spec/url", "http://git.example.com/repo.git")
print(op.to_dict())  # {'op': 'replace', 'path': '/spec/url', 'value': '...'}
```

Working out the registry address from a state document:

```python
from zarfkit.config import state_from_dict, get_registry

state = state_from_dict({"registryInfo": {"nodePort": 31999}})
print(get_registry(state))  # 127.0.0.1:31999
```

Answering an admission review with your own hook:

```python
import json
from zarfkit.operations import Hook, Result, replace_patch_operation
from zarfkit.webhook import AdmissionHandler

hook = Hook(create=lambda req: Result(
    allowed=True,
    patch_ops=[replace_patch_operation("/metadata/labels/zarf-agent", "patched")],
))
body = json.dumps({"request": {"uid": "abc", "operation": "CREATE", "object": {}}}).encode()
reply = AdmissionHandler().handle(hook, "POST", "application/json", body)
print(reply.status)  # 200
```

## What this package does not do

- There is no command-line program; the helpers are used from Python.
- It ships no pod or git-repository mutation hooks: `new_server` and
  `start_webhook` serve whatever `Hook` objects you pass in.
- There is no UI API server and no cluster client; state and tunnels come from
  the caller.

## Tests

```
pip install .[test]
pytest
```