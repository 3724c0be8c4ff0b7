"""Normalization of solver documents into display pods.

The solver answers with a nested document of pods, each holding one or
more subpods with a rendered image. ResponseNormalizer validates that
document and flattens it into the ordered list of Pod records a renderer
shows, one per subpod.

Normalization is all-or-nothing. Any missing or mistyped field rejects the
whole document with MalformedResponse; a document that is well formed but
lacks the "Input" or "Result" section is rejected with UnsupportedEquation,
which means the solver did not understand the equation even though the
transport succeeded.

Example usage::

    from notasolver.analysis.normalizer import ResponseNormalizer

    pods = ResponseNormalizer().normalize(document)
    for pod in pods:
        print(pod.title, pod.image_src)
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Tuple

from ..domain.equation import Pod
from ..errors import MalformedResponse, UnsupportedEquation

logger = logging.getLogger(__name__)

INPUT_POD_ID = 'Input'
RESULT_POD_ID = 'Result'


def _require_str(container: Mapping[str, Any], key: str, where: str) -> str:
    value = container.get(key)
    if not isinstance(value, str):
        raise MalformedResponse(f"{where}: missing or non-string '{key}'")
    return value


def pod_display_title(pod_title: str, subpod_title: str) -> str:
    """Title shown for a subpod; an empty subpod title collapses to the pod's."""
    return f"{pod_title}: {subpod_title}" if subpod_title else pod_title


class ResponseNormalizer:
    """Validates solver documents and flattens them into pods.

    Attributes:
        required_ids: Pod identifiers that must all be present for the
            document to count as a solution.
    """

    def __init__(self, required_ids: Tuple[str, ...] = (INPUT_POD_ID, RESULT_POD_ID)):
        self.required_ids = tuple(required_ids)

    def normalize(self, document: Any) -> Tuple[Pod, ...]:
        """Convert a raw solver document into an ordered tuple of pods.

        Args:
            document: Parsed JSON document from the solver.

        Returns:
            Tuple of Pod in document order, one per subpod.

        Raises:
            MalformedResponse: The document failed a structural check.
            UnsupportedEquation: The Input or Result section is missing.
        """
        if not isinstance(document, Mapping):
            raise MalformedResponse("document is not an object")

        self._check_success(document)

        pods = document.get('pods')
        if not isinstance(pods, list):
            raise MalformedResponse("document has no 'pods' list")

        input_string = document.get('inputstring')
        if isinstance(input_string, str):
            logger.debug("Solver input string (in response): %s", input_string)

        parsed: List[Pod] = []
        ids = set()
        for index, pod in enumerate(pods):
            pod_id, entries = self._parse_pod(pod, index)
            ids.add(pod_id)
            parsed.extend(entries)

        if not parsed:
            raise UnsupportedEquation("document contains no subpods")
        missing = [pid for pid in self.required_ids if pid not in ids]
        if missing:
            raise UnsupportedEquation(
                f"document lacks required pods: {', '.join(missing)}"
            )

        logger.debug("Normalized %d pods into %d entries", len(pods), len(parsed))
        return tuple(parsed)

    @staticmethod
    def _check_success(document: Mapping[str, Any]) -> None:
        success = document.get('success')
        error = document.get('error')
        if not isinstance(success, bool) or not isinstance(error, bool):
            raise MalformedResponse("document lacks boolean 'success'/'error' flags")
        if not success or error:
            raise MalformedResponse(
                f"solver reported failure (success={success}, error={error})"
            )

    @staticmethod
    def _parse_pod(pod: Any, index: int) -> Tuple[str, List[Pod]]:
        where = f"pod[{index}]"
        if not isinstance(pod, Mapping):
            raise MalformedResponse(f"{where}: not an object")
        pod_title = _require_str(pod, 'title', where)
        pod_id = _require_str(pod, 'id', where)

        subpods = pod.get('subpods')
        if not isinstance(subpods, list) or not subpods:
            raise MalformedResponse(f"{where} ({pod_id}): missing or empty 'subpods'")

        entries = []
        for sub_index, subpod in enumerate(subpods):
            sub_where = f"{where}.subpods[{sub_index}]"
            if not isinstance(subpod, Mapping):
                raise MalformedResponse(f"{sub_where}: not an object")
            subpod_title = _require_str(subpod, 'title', sub_where)
            img = subpod.get('img')
            if not isinstance(img, Mapping):
                raise MalformedResponse(f"{sub_where}: missing 'img'")
            src = _require_str(img, 'src', f"{sub_where}.img")
            if not src:
                raise MalformedResponse(f"{sub_where}.img: empty 'src'")
            entries.append(Pod(pod_display_title(pod_title, subpod_title), src))
        return pod_id, entries
