"""PDF functions (PDF 32000-1, section 7.10).

Functions map m input values to n output values. Color spaces use them as
tint transforms: a Separation or DeviceN space feeds its tints through a
function to obtain components of its alternate space.
"""

import bisect
import io
import logging
import math
from collections.abc import Callable, Sequence
from typing import Any

from pdfminer.pdftypes import PDFStream, resolve1
from pdfminer.psexceptions import PSException
from pdfminer.psparser import PSKeyword, PSStackParser

from pdfcolorspace.pdfexceptions import PDFFunctionError

log = logging.getLogger(__name__)


def interpolate(x: float, xmin: float, xmax: float, ymin: float, ymax: float) -> float:
    if xmax == xmin:
        return ymin
    return ymin + (x - xmin) * (ymax - ymin) / (xmax - xmin)


def _number(obj: object, what: str) -> float:
    obj = resolve1(obj)
    if isinstance(obj, bool) or not isinstance(obj, (int, float)):
        raise PDFFunctionError(f"{what} must be a number: {obj!r}")
    return float(obj)


def _numbers(attrs: dict[str, Any], key: str, required: bool = False) -> list[float] | None:
    value = resolve1(attrs.get(key))
    if value is None:
        if required:
            raise PDFFunctionError(f"Function has no /{key}")
        return None
    if not isinstance(value, list):
        raise PDFFunctionError(f"/{key} must be an array: {value!r}")
    return [_number(v, f"/{key} entry") for v in value]


def _pairs(values: Sequence[float]) -> list[tuple[float, float]]:
    return [(values[i], values[i + 1]) for i in range(0, len(values) - 1, 2)]


class PDFFunction:
    """Base class of all function types.

    Calling a function clips its inputs to ``Domain`` and, when a ``Range``
    is present, clips its outputs to it.
    """

    def __init__(
        self,
        domain: Sequence[float],
        range_: Sequence[float] | None = None,
    ) -> None:
        if len(domain) < 2 or len(domain) % 2:
            raise PDFFunctionError(f"Invalid /Domain: {domain!r}")
        if range_ is not None and (len(range_) < 2 or len(range_) % 2):
            raise PDFFunctionError(f"Invalid /Range: {range_!r}")
        self.domain = _pairs(domain)
        self.range = _pairs(range_) if range_ is not None else None

    @property
    def ninputs(self) -> int:
        return len(self.domain)

    @property
    def noutputs(self) -> int | None:
        return len(self.range) if self.range is not None else None

    def __call__(self, components: Sequence[float]) -> list[float]:
        if len(components) < self.ninputs:
            raise PDFFunctionError(
                f"Function needs {self.ninputs} inputs, got {len(components)}"
            )
        inputs = [
            max(low, min(high, float(x)))
            for (x, (low, high)) in zip(components, self.domain)
        ]
        outputs = self.evaluate(inputs)
        if self.range is not None:
            outputs = [
                max(low, min(high, y)) for (y, (low, high)) in zip(outputs, self.range)
            ]
        return outputs

    def evaluate(self, inputs: list[float]) -> list[float]:
        raise NotImplementedError


class SampledFunction(PDFFunction):
    """Type 0: a table of samples with multilinear interpolation."""

    SUPPORTED_BITS = (1, 2, 4, 8, 12, 16, 24, 32)

    def __init__(self, attrs: dict[str, Any], data: bytes) -> None:
        domain = _numbers(attrs, "Domain", required=True)
        range_ = _numbers(attrs, "Range", required=True)
        assert domain is not None and range_ is not None
        super().__init__(domain, range_)
        size = _numbers(attrs, "Size", required=True)
        assert size is not None
        self.size = [int(s) for s in size]
        if len(self.size) != self.ninputs or any(s < 1 for s in self.size):
            raise PDFFunctionError(f"Invalid /Size: {size!r}")
        self.bits = int(_number(attrs.get("BitsPerSample"), "/BitsPerSample"))
        if self.bits not in self.SUPPORTED_BITS:
            raise PDFFunctionError(f"Unsupported /BitsPerSample: {self.bits}")
        encode = _numbers(attrs, "Encode")
        if encode is None:
            encode = [v for s in self.size for v in (0.0, s - 1.0)]
        decode = _numbers(attrs, "Decode")
        if decode is None:
            decode = list(range_)
        self.encode = _pairs(encode)
        self.decode = _pairs(decode)
        if len(self.encode) != self.ninputs or len(self.decode) != len(self.range or ()):
            raise PDFFunctionError("/Encode or /Decode has the wrong length")
        self.data = data
        nsamples = math.prod(self.size) * len(self.decode)
        if len(data) * 8 < nsamples * self.bits:
            raise PDFFunctionError(
                f"Sample data too short: {len(data)} bytes for {nsamples} samples"
            )
        self.maxsample = (1 << self.bits) - 1

    def _sample(self, index: int) -> int:
        bitpos = index * self.bits
        start = bitpos // 8
        end = (bitpos + self.bits + 7) // 8
        chunk = int.from_bytes(self.data[start:end], "big")
        return (chunk >> (end * 8 - bitpos - self.bits)) & self.maxsample

    def evaluate(self, inputs: list[float]) -> list[float]:
        noutputs = len(self.decode)
        positions = []
        for (x, (dmin, dmax), (emin, emax), size) in zip(
            inputs, self.domain, self.encode, self.size
        ):
            e = interpolate(x, dmin, dmax, emin, emax)
            positions.append(max(0.0, min(size - 1.0, e)))

        # Walk every corner of the enclosing hypercube, skipping
        # dimensions that fall exactly on a sample.
        corners: list[tuple[float, int]] = [(1.0, 0)]
        stride = 1
        for (e, size) in zip(positions, self.size):
            low = int(math.floor(e))
            frac = e - low
            next_corners = []
            for (weight, offset) in corners:
                next_corners.append((weight * (1.0 - frac), offset + low * stride))
                if frac > 0.0 and low + 1 < size:
                    next_corners.append((weight * frac, offset + (low + 1) * stride))
            corners = next_corners
            stride *= size

        outputs = []
        for j in range(noutputs):
            value = sum(
                weight * self._sample(offset * noutputs + j) for (weight, offset) in corners
            )
            (dmin, dmax) = self.decode[j]
            outputs.append(interpolate(value, 0.0, self.maxsample, dmin, dmax))
        return outputs


class ExponentialFunction(PDFFunction):
    """Type 2: ``C0 + x**N * (C1 - C0)``."""

    def __init__(self, attrs: dict[str, Any]) -> None:
        domain = _numbers(attrs, "Domain", required=True)
        assert domain is not None
        super().__init__(domain, _numbers(attrs, "Range"))
        if self.ninputs != 1:
            raise PDFFunctionError("Exponential functions take exactly one input")
        self.c0 = _numbers(attrs, "C0") or [0.0]
        self.c1 = _numbers(attrs, "C1") or [1.0]
        if len(self.c0) != len(self.c1):
            raise PDFFunctionError("/C0 and /C1 differ in length")
        self.n = _number(attrs.get("N"), "/N")

    def evaluate(self, inputs: list[float]) -> list[float]:
        x = inputs[0]
        if x < 0.0 and not self.n.is_integer():
            x = 0.0
        try:
            t = x**self.n
        except ZeroDivisionError:
            t = 0.0
        return [a + t * (b - a) for (a, b) in zip(self.c0, self.c1)]


class StitchingFunction(PDFFunction):
    """Type 3: one-input subfunctions stitched together over subdomains."""

    def __init__(self, attrs: dict[str, Any]) -> None:
        domain = _numbers(attrs, "Domain", required=True)
        assert domain is not None
        super().__init__(domain, _numbers(attrs, "Range"))
        if self.ninputs != 1:
            raise PDFFunctionError("Stitching functions take exactly one input")
        functions = resolve1(attrs.get("Functions"))
        if not isinstance(functions, list) or not functions:
            raise PDFFunctionError(f"Invalid /Functions: {functions!r}")
        self.functions = [build_function(f) for f in functions]
        self.bounds = _numbers(attrs, "Bounds") or []
        encode = _numbers(attrs, "Encode", required=True)
        assert encode is not None
        self.encode = _pairs(encode)
        k = len(self.functions)
        if len(self.bounds) != k - 1 or len(self.encode) != k:
            raise PDFFunctionError(
                f"{k} subfunctions need {k - 1} bounds and {2 * k} encode values"
            )

    def evaluate(self, inputs: list[float]) -> list[float]:
        x = inputs[0]
        (dmin, dmax) = self.domain[0]
        i = bisect.bisect_right(self.bounds, x)
        if i == len(self.functions):
            i -= 1
        low = self.bounds[i - 1] if i > 0 else dmin
        high = self.bounds[i] if i < len(self.bounds) else dmax
        (emin, emax) = self.encode[i]
        return self.functions[i]([interpolate(x, low, high, emin, emax)])


class _CalculatorParser(PSStackParser):  # type: ignore[type-arg]
    """Keeps operators on the stack so procedures come out as token lists."""

    def do_keyword(self, pos: int, token: PSKeyword) -> None:
        self.push((pos, token))

    def flush(self) -> None:
        self.add_results(*self.popall())


def _unary(fn: Callable[[float], float]) -> Callable[[list[Any]], None]:
    def op(stack: list[Any]) -> None:
        stack.append(fn(stack.pop()))

    return op


def _binary(fn: Callable[[Any, Any], Any]) -> Callable[[list[Any]], None]:
    def op(stack: list[Any]) -> None:
        b = stack.pop()
        a = stack.pop()
        stack.append(fn(a, b))

    return op


def _div(a: float, b: float) -> float:
    if b == 0:
        raise PDFFunctionError("div: division by zero")
    return a / b


def _idiv(a: int, b: int) -> int:
    if b == 0:
        raise PDFFunctionError("idiv: division by zero")
    return int(a / b)


def _mod(a: int, b: int) -> int:
    if b == 0:
        raise PDFFunctionError("mod: division by zero")
    return int(math.fmod(a, b))


def _atan(num: float, den: float) -> float:
    angle = math.degrees(math.atan2(num, den))
    return angle + 360.0 if angle < 0 else angle


def _bitshift(a: int, shift: int) -> int:
    return a << shift if shift >= 0 else a >> -shift


def _logical(fn: Callable[[Any, Any], Any]) -> Callable[[Any, Any], Any]:
    def op(a: Any, b: Any) -> Any:
        if isinstance(a, bool) and isinstance(b, bool):
            return bool(fn(a, b))
        return fn(int(a), int(b))

    return op


def _not(a: Any) -> Any:
    if isinstance(a, bool):
        return not a
    return ~int(a)


def _round(a: float) -> float:
    return float(math.floor(a + 0.5))


def _copy(stack: list[Any]) -> None:
    n = int(stack.pop())
    if n < 0 or n > len(stack):
        raise PDFFunctionError(f"copy: invalid count {n}")
    if n:
        stack.extend(stack[-n:])


def _index(stack: list[Any]) -> None:
    n = int(stack.pop())
    if n < 0 or n >= len(stack):
        raise PDFFunctionError(f"index: invalid position {n}")
    stack.append(stack[-1 - n])


def _roll(stack: list[Any]) -> None:
    j = int(stack.pop())
    n = int(stack.pop())
    if n < 0 or n > len(stack):
        raise PDFFunctionError(f"roll: invalid count {n}")
    if n:
        j %= n
        segment = stack[-n:]
        stack[-n:] = segment[-j:] + segment[:-j]


def _exch(stack: list[Any]) -> None:
    stack[-1], stack[-2] = stack[-2], stack[-1]


OPERATORS: dict[bytes, Callable[[list[Any]], None]] = {
    # arithmetic
    b"abs": _unary(abs),
    b"add": _binary(lambda a, b: a + b),
    b"atan": _binary(_atan),
    b"ceiling": _unary(lambda a: float(math.ceil(a))),
    b"cos": _unary(lambda a: math.cos(math.radians(a))),
    b"cvi": _unary(lambda a: int(a)),
    b"cvr": _unary(lambda a: float(a)),
    b"div": _binary(_div),
    b"exp": _binary(lambda a, b: float(a) ** b),
    b"floor": _unary(lambda a: float(math.floor(a))),
    b"idiv": _binary(_idiv),
    b"ln": _unary(math.log),
    b"log": _unary(math.log10),
    b"mod": _binary(_mod),
    b"mul": _binary(lambda a, b: a * b),
    b"neg": _unary(lambda a: -a),
    b"round": _unary(_round),
    b"sin": _unary(lambda a: math.sin(math.radians(a))),
    b"sqrt": _unary(math.sqrt),
    b"sub": _binary(lambda a, b: a - b),
    b"truncate": _unary(lambda a: float(math.trunc(a))),
    # relational, boolean and bitwise
    b"and": _binary(_logical(lambda a, b: a & b)),
    b"bitshift": _binary(_bitshift),
    b"eq": _binary(lambda a, b: a == b),
    b"ge": _binary(lambda a, b: a >= b),
    b"gt": _binary(lambda a, b: a > b),
    b"le": _binary(lambda a, b: a <= b),
    b"lt": _binary(lambda a, b: a < b),
    b"ne": _binary(lambda a, b: a != b),
    b"not": _unary(_not),
    b"or": _binary(_logical(lambda a, b: a | b)),
    b"xor": _binary(_logical(lambda a, b: a ^ b)),
    # stack
    b"copy": _copy,
    b"dup": lambda stack: stack.append(stack[-1]),
    b"exch": _exch,
    b"index": _index,
    b"pop": lambda stack: stack.pop(),
    b"roll": _roll,
}

KEYWORD_IF = b"if"
KEYWORD_IFELSE = b"ifelse"


class PostScriptFunction(PDFFunction):
    """Type 4: a PostScript calculator program."""

    def __init__(self, attrs: dict[str, Any], data: bytes) -> None:
        domain = _numbers(attrs, "Domain", required=True)
        range_ = _numbers(attrs, "Range", required=True)
        assert domain is not None and range_ is not None
        super().__init__(domain, range_)
        self.program = self.parse(data)

    @classmethod
    def parse(cls, data: bytes) -> list[Any]:
        parser = _CalculatorParser(io.BytesIO(data))
        try:
            (_, program) = parser.nextobject()
        except PSException as err:
            raise PDFFunctionError(f"Cannot parse calculator function: {err!r}") from err
        if not isinstance(program, list):
            raise PDFFunctionError(f"Calculator function is not a procedure: {program!r}")
        cls._check(program)
        return program

    @classmethod
    def _check(cls, proc: list[Any]) -> None:
        for token in proc:
            if isinstance(token, list):
                cls._check(token)
            elif isinstance(token, PSKeyword):
                if token.name not in OPERATORS and token.name not in (
                    KEYWORD_IF,
                    KEYWORD_IFELSE,
                ):
                    raise PDFFunctionError(f"Unknown calculator operator: {token!r}")
            elif not isinstance(token, (int, float, bool)):
                raise PDFFunctionError(f"Unexpected calculator token: {token!r}")

    def evaluate(self, inputs: list[float]) -> list[float]:
        stack: list[Any] = list(inputs)
        try:
            self._execute(self.program, stack)
        except (IndexError, TypeError, ValueError, OverflowError) as err:
            raise PDFFunctionError(f"Calculator function failed: {err!r}") from err
        n = len(self.range or ())
        if len(stack) < n:
            raise PDFFunctionError(
                f"Calculator function left {len(stack)} values, expected {n}"
            )
        return [float(v) for v in stack[len(stack) - n :]]

    def _execute(self, proc: list[Any], stack: list[Any]) -> None:
        for token in proc:
            if not isinstance(token, PSKeyword):
                stack.append(token)
            elif token.name == KEYWORD_IF:
                body = stack.pop()
                if stack.pop():
                    self._execute(body, stack)
            elif token.name == KEYWORD_IFELSE:
                else_body = stack.pop()
                body = stack.pop()
                self._execute(body if stack.pop() else else_body, stack)
            else:
                OPERATORS[token.name](stack)


class FunctionArray(PDFFunction):
    """An array of one-output functions evaluated side by side."""

    def __init__(self, functions: list[PDFFunction]) -> None:
        super().__init__([v for pair in functions[0].domain for v in pair])
        self.functions = functions

    def evaluate(self, inputs: list[float]) -> list[float]:
        outputs: list[float] = []
        for f in self.functions:
            outputs.extend(f(inputs))
        return outputs


def build_function(obj: object) -> PDFFunction:
    """Build a callable function from a function dictionary or stream.

    :raises PDFFunctionError: if the object does not describe a function.
    """
    spec = resolve1(obj)
    if isinstance(spec, list):
        if not spec:
            raise PDFFunctionError("Empty function array")
        return FunctionArray([build_function(f) for f in spec])
    data = b""
    if isinstance(spec, PDFStream):
        attrs = spec.attrs
        data = spec.get_data() or b""
    elif isinstance(spec, dict):
        attrs = spec
    else:
        raise PDFFunctionError(f"Invalid function: {spec!r}")

    function_type = resolve1(attrs.get("FunctionType"))
    log.debug("build_function: type=%r, attrs=%r", function_type, attrs)
    if function_type == 0 and isinstance(spec, PDFStream):
        return SampledFunction(attrs, data)
    elif function_type == 2:
        return ExponentialFunction(attrs)
    elif function_type == 3:
        return StitchingFunction(attrs)
    elif function_type == 4 and isinstance(spec, PDFStream):
        return PostScriptFunction(attrs, data)
    raise PDFFunctionError(f"Unsupported function type: {function_type!r}")
