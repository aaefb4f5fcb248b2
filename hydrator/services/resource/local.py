"""本地目录资源 — 不做水合，只校验路径可读"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

from hydrator.core.exceptions import Hints, ResourceError, ValidationError
from hydrator.core.models import HydratedResource, ResourceKind, ResourceSpec
from hydrator.services.resource.naming import resource_name_to_key

if TYPE_CHECKING:
    from hydrator.utils.cancel import CancelToken


class LocalResourceLoader:
    """本地目录不归引擎所有，因此从不附带 cleanup"""

    def load(
        self, spec: ResourceSpec, *, cancel_token: CancelToken | None = None,
    ) -> HydratedResource:
        if not spec.path:
            raise ValidationError(f'local 资源 "{spec.name}" 缺少 path')

        path = Path(spec.path).expanduser()
        if not path.exists():
            raise ResourceError(
                f'本地资源 "{spec.name}" 的路径不存在: {path}',
                hint=Hints.CHECK_CONFIG,
            )
        if not path.is_dir():
            raise ResourceError(
                f'本地资源 "{spec.name}" 的路径不是目录: {path}',
                hint=Hints.CHECK_CONFIG,
            )
        if not os.access(path, os.R_OK | os.X_OK):
            raise ResourceError(
                f'本地资源 "{spec.name}" 的目录不可读: {path}',
                hint="请确认当前用户对该目录有读权限。",
            )

        return HydratedResource(
            name=spec.name,
            fs_name=resource_name_to_key(spec.name),
            kind=ResourceKind.LOCAL,
            local_path=path.resolve(),
            repo_sub_paths=[],
            special_agent_instructions=spec.special_agent_instructions,
        )
