"""cdnsync: mirror new upstream package versions into a CDN git repository.

For each managed project the pipeline resolves the latest known version from
the local snapshot, the release branches and the upstream registry, installs
a newer release when one exists, and commits it on an isolated branch.
"""

__version__ = "0.1.0"
