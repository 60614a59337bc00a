# step_workflows/push.py
from __future__ import annotations

from typing import Any, Dict

from ..git_facts import git
from ..model import Step, TaskContext

COMMIT_MESSAGE = "[ci skip] Build {version}"


def push_changes_step() -> Step:
    def _push(ctx: TaskContext) -> Dict[str, Any]:
        s = ctx.settings
        if s.is_pull_request:
            return {"message": "skipped (pull request build)"}

        token = s.require("github_key")
        repo_name = s.require("repo_name")
        branch = s.require("branch")
        version = s.version or "local"

        git.configure_identity(
            s.commit_author or "psbuild",
            s.commit_email or "psbuild@users.noreply.github.com",
            cwd=s.root,
        )
        git.checkout(branch, cwd=s.root)
        git.add_all(cwd=s.root)

        if not git.is_dirty(cwd=s.root):
            ctx.console.print_info("Nothing to commit")
            return {"committed": 0, "message": "nothing to commit"}

        git.commit(COMMIT_MESSAGE.format(version=version), cwd=s.root)
        git.push(
            git.authenticated_remote(repo_name, token),
            branch,
            cwd=s.root,
            secrets=[token],
        )
        ctx.console.print_info(f"Pushed build changes to {repo_name}@{branch}")
        return {"committed": 1}

    return Step(name="Commit and push build changes", action=_push, kind="git")
