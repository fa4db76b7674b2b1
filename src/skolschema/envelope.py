"""Decoding and unwrapping of the Skola24 response envelope.

Every API response is an :class:`~skolschema.models.Envelope` whose ``data``
field holds either the requested payload or a
:class:`~skolschema.models.FailurePayload`. The JSON carries no tag telling
the two apart, so :func:`decode_envelope` tries the shapes in order: the
success payload first, the failure payload second. Only when both fail is the
body reported as malformed.

:func:`unwrap` then turns a decoded envelope into either an envelope holding
the bare payload or one of two disjoint exceptions:

* :class:`~skolschema.exceptions.RootApiError` -- the root ``error`` is set.
* :class:`~skolschema.exceptions.ApiError` -- ``data`` is a failure payload.

Example::

    from skolschema.envelope import parse_response
    from skolschema.models import ClassList

    envelope = parse_response(raw_bytes, ClassList)
    for school_class in envelope.data.classes:
        print(school_class.group_name)
"""

from __future__ import annotations

import json
from typing import Any, TypeVar, Union

import pydantic

from skolschema.exceptions import ApiError, MalformedResponseError, RootApiError
from skolschema.models import Envelope, FailurePayload

PayloadT = TypeVar("PayloadT", bound=pydantic.BaseModel)


def decode_envelope(
    raw: bytes | str,
    payload_type: type[PayloadT],
) -> Envelope[Union[PayloadT, FailurePayload]]:
    """Decode a raw response body into an envelope with a typed ``data`` field.

    Args:
        raw: The response body as received from the service or the cache.
        payload_type: The model describing the success shape of ``data``.

    Returns:
        An envelope whose ``data`` is an instance of *payload_type* or a
        :class:`~skolschema.models.FailurePayload`.

    Raises:
        MalformedResponseError: If the body is not JSON, the root is not an
            envelope, or ``data`` matches neither shape.
    """
    try:
        document = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MalformedResponseError(f"Response is not valid JSON: {exc}") from exc

    try:
        root = Envelope[Any].model_validate(document)
    except pydantic.ValidationError as exc:
        raise MalformedResponseError(f"Response is not an API envelope: {exc}") from exc

    data: Union[PayloadT, FailurePayload]
    try:
        data = payload_type.model_validate(root.data)
    except pydantic.ValidationError as success_exc:
        try:
            data = FailurePayload.model_validate(root.data)
        except pydantic.ValidationError:
            raise MalformedResponseError(
                f"Response data matches neither {payload_type.__name__} "
                f"nor a failure payload: {success_exc}"
            ) from success_exc

    return root.model_copy(update={"data": data})


def unwrap(envelope: Envelope[Union[PayloadT, FailurePayload]]) -> Envelope[PayloadT]:
    """Strip the success/failure union from a decoded envelope.

    The result is an ``Envelope`` parametrised with the concrete payload
    class, e.g. ``Envelope[ClassList]``. All side-channel fields are carried
    over unchanged.

    Raises:
        RootApiError: If the envelope's root ``error`` is non-null.
        ApiError: If ``data`` is a failure payload.
    """
    if envelope.error is not None:
        raise RootApiError(f"API returned a root error: {envelope.error!r}", envelope.error)

    if isinstance(envelope.data, FailurePayload):
        raise ApiError(envelope.data)

    payload_envelope = Envelope[type(envelope.data)]
    return payload_envelope.model_construct(
        _fields_set=envelope.model_fields_set, **dict(envelope)
    )


def parse_response(raw: bytes | str, payload_type: type[PayloadT]) -> Envelope[PayloadT]:
    """Decode and unwrap *raw* in one step.

    See :func:`decode_envelope` and :func:`unwrap` for the failure modes.
    """
    return unwrap(decode_envelope(raw, payload_type))
