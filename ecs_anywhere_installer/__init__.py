"""ECS Anywhere installer for Windows Server hosts.

One-shot, non-interactive run that attaches a host to an ECS cluster as an
external instance, or removes it again:

- Validate the host and the parameters before touching anything
- Enable the Containers feature (a pending restart ends the run early)
- Fetch and hash-check the artifact bundle
- Install Docker, the SSM agent and the ECS agent in dependency order
- Always remove the per-run workspace
"""

__all__ = []
