"""Host collaborators.

The trigger engine consumes a job registry, a build scheduler and a branch
metadata provider. `model` declares those contracts; `memory` is a complete
in-memory host and `github` resolves pull request branches through GitHub.
"""

__all__: list[str] = []
