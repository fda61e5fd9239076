"""Basic install and catalog example.

This example shows the simplest usage pattern: load the configuration,
install a data package with its data dependencies, and render it as a
JSON-LD catalog. Fetched packages are cached under ~/.ldpm/cache, so the
second call does not hit the registry again.
"""

from pathlib import Path

from ldpm import InstallOptions, Ldpm, load_config
from ldpm.jsonld import date_published, dumps, to_transport


# Option 1: Factory method (recommended for most cases)
# Reads ~/.ldpm/config.json and LDPM_* variables, wires HttpRegistry + FileCache
config = load_config()
ldpm = Ldpm.from_config(config)

# Option 2: Manual wiring (full control over adapters)
# from ldpm import FileCache, HttpRegistry
# ldpm = Ldpm(
#     registry=HttpRegistry("https://registry.standardanalytics.io"),
#     cache=FileCache(Path.home() / ".ldpm" / "cache"),
#     max_workers=8,
# )

# Writes ./data/req-test/{package.json, datapackages/mydpkg-test/...}
nodes = ldpm.install(["req-test@0.0.0"], Path("./data"), InstallOptions(top=True))
for node in nodes:
    print(f"Installed {node.identifier}")

# Rendering reuses the cached packages
(node,) = ldpm.resolve(["req-test@0.0.0"])
document = to_transport(ldpm.render(node), config.context_url, date_published(node))
print(dumps(document))
