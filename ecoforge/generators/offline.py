"""Deterministic offline generator for demos and local runs.

Produces plausible placeholder artifacts without calling any model.  The
primary generation returns a small React project derived from the prompt;
secondary kinds stream a short Markdown or config document line by line.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import AsyncIterator
from typing import Any

from ecoforge.generators.base import GeneratorOutput
from ecoforge.models.artifacts import SerializedFile
from ecoforge.models.tasks import ArtifactKind


def _component_name(prompt: str) -> str:
    words = re.findall(r"[A-Za-z0-9]+", prompt)
    return "".join(w.capitalize() for w in words[:3]) or "Feature"


class OfflineGenerator:
    """Template-backed generator that never touches the network.

    Parameters
    ----------
    chunk_delay:
        Seconds to sleep between streamed chunks (0 yields control only).
    """

    def __init__(self, chunk_delay: float = 0.0) -> None:
        self.chunk_delay = chunk_delay

    def generate(self, kind: ArtifactKind, inputs: dict[str, Any]) -> Any:
        if kind == ArtifactKind.SOURCE_FILES:
            return self._source_files(inputs)
        if kind == ArtifactKind.SECURITY_REPORT:
            return self._security_report(inputs)
        return self._stream(self._document(kind, inputs))

    async def _source_files(self, inputs: dict[str, Any]) -> GeneratorOutput:
        prompt = inputs.get("prompt", "")
        name = _component_name(prompt)
        files = [
            SerializedFile(
                path="src/App.tsx",
                content=(
                    f"import {{ {name} }} from './components/{name}';\n\n"
                    f"export default function App() {{\n  return <{name} />;\n}}\n"
                ),
            ),
            SerializedFile(
                path=f"src/components/{name}.tsx",
                content=(
                    f"// {prompt}\n"
                    f"export function {name}() {{\n"
                    f"  return <div className=\"p-4\">{name}</div>;\n}}\n"
                ),
            ),
        ]
        if inputs.get("include_backend"):
            files.append(SerializedFile(
                path="server/index.ts",
                content="import express from 'express';\n\nconst app = express();\napp.listen(3000);\n",
            ))
        return GeneratorOutput(files=files)

    async def _security_report(self, inputs: dict[str, Any]) -> GeneratorOutput:
        return GeneratorOutput(content={
            "tool": inputs.get("security_tool", ""),
            "findings": [],
            "summary": "No critical findings.",
        })

    def _document(self, kind: ArtifactKind, inputs: dict[str, Any]) -> list[str]:
        title = kind.value.replace("_", " ").title()
        prompt = inputs.get("prompt", "")
        if kind == ArtifactKind.DEPLOYMENT_MANIFESTS:
            provider = inputs.get("cloud_provider", "cloud")
            return [
                "apiVersion: apps/v1\n", "kind: Deployment\n",
                f"metadata:\n  name: {provider.lower()}-app\n",
                "---\n",
                "apiVersion: v1\n", "kind: Service\n",
                f"metadata:\n  name: {provider.lower()}-svc\n",
            ]
        if kind == ArtifactKind.DOCKERFILE:
            return ["FROM node:20-alpine\n", "WORKDIR /app\n", "COPY . .\n",
                    "RUN npm ci && npm run build\n", 'CMD ["npm", "start"]\n']
        if kind == ArtifactKind.COMMIT_MESSAGE:
            return [f"feat: {prompt or 'generated feature'}\n"]
        lines = [f"# {title}\n", "\n"]
        if prompt:
            lines.append(f"Generated for: {prompt}\n")
        for key in sorted(inputs):
            if key.startswith("upstream:"):
                lines.append(f"Builds on {key.removeprefix('upstream:')}.\n")
        return lines

    async def _stream(self, chunks: list[str]) -> AsyncIterator[str]:
        for chunk in chunks:
            await asyncio.sleep(self.chunk_delay)
            yield chunk
