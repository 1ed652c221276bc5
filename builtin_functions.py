import math
import random
import struct
from decimal import Decimal

from basic_errors import BasicRuntimeError

INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1


# ---------- NUMERIC HELPERS ----------

def to_int32(value: int) -> int:
    # two's complement wrap-around
    return ((value - INT32_MIN) % 2 ** 32) + INT32_MIN


def parse_int32(text: str) -> int:
    # optional sign and ASCII digits only; out-of-range values are rejected, not wrapped
    digits = text[1:] if text[:1] in ("+", "-") else text
    if not (digits.isascii() and digits.isdigit()):
        raise ValueError(f"not an integer: '{text}'")
    value = int(text)
    if not INT32_MIN <= value <= INT32_MAX:
        raise ValueError(f"integer out of range: '{text}'")
    return value


def saturate_int32(value: float) -> int:
    # float -> int the way a narrowing cast does it: truncate, clamp, NaN is 0
    if math.isnan(value):
        return 0
    if value >= INT32_MAX:
        return INT32_MAX
    if value <= INT32_MIN:
        return INT32_MIN
    return int(value)


def to_float32(value: float) -> float:
    try:
        return struct.unpack("f", struct.pack("f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def is_number(value) -> bool:
    return is_int(value) or isinstance(value, float)


def format_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "-0.0" if math.copysign(1.0, value) < 0 else "0.0"

    # shortest digit string that still reads back as the same single
    text = f"{value:.9g}"
    for digits in range(1, 10):
        candidate = f"{value:.{digits}g}"
        if to_float32(float(candidate)) == value:
            text = candidate
            break

    number = Decimal(text)
    if 1e-3 <= abs(value) < 1e7:
        plain = format(number, "f")
        if "." not in plain:
            plain += ".0"
        return plain

    sign, digit_tuple, exponent = number.as_tuple()
    digit_str = "".join(str(d) for d in digit_tuple).rstrip("0") or "0"
    sci_exponent = len(digit_tuple) - 1 + exponent
    mantissa = digit_str[0] + "." + (digit_str[1:] or "0")
    return f"{'-' if sign else ''}{mantissa}E{sci_exponent}"


def format_value(value) -> str:
    if isinstance(value, float):
        return format_float(value)
    return str(value)


def type_name(value) -> str:
    if is_int(value):
        return "integer"
    if isinstance(value, float):
        return "float"
    if isinstance(value, str):
        return "string"
    return type(value).__name__


# ---------- BUILT-INS ----------
# Each built-in receives the already evaluated arguments and the interpreter's
# random.Random instance.

def _signature_error(name, signature, args):
    shown = ", ".join(format_value(a) if not isinstance(a, str) else f'"{a}"' for a in args)
    return BasicRuntimeError(f"Cannot use values ({shown}) for built-in function {name}{signature}")


def builtin_random(args, rng):
    if not args:
        return rng.randint(0, INT32_MAX)
    low, high = args
    if not (is_int(low) and is_int(high)):
        raise _signature_error("RANDOM", "(integer, integer)", args)
    if high <= low:
        return low
    return rng.randrange(low, high)


def builtin_randomf(args, rng):
    if not args:
        return to_float32(rng.random())
    low, high = args
    if not (isinstance(low, float) and isinstance(high, float)):
        raise _signature_error("RANDOMF", "(float, float)", args)
    return to_float32(low + rng.random() * (high - low))


def builtin_left(args, rng):
    text, count = args
    if not (isinstance(text, str) and is_int(count)) or count < 0:
        raise _signature_error("LEFT$", "(string, integer)", args)
    return text[:count]


def builtin_right(args, rng):
    text, count = args
    if not (isinstance(text, str) and is_int(count)) or count < 0:
        raise _signature_error("RIGHT$", "(string, integer)", args)
    return text[max(0, len(text) - count):]


def builtin_mid(args, rng):
    text, start, count = args
    if not (isinstance(text, str) and is_int(start) and is_int(count)):
        raise _signature_error("MID$", "(string, integer, integer)", args)
    if start < 0 or count < 0 or start > len(text):
        raise BasicRuntimeError(f"MID$ range out of bounds: start {start}, count {count}, length {len(text)}")
    return text[start:start + count]


def builtin_num(args, rng):
    (number,) = args
    if not is_number(number):
        raise _signature_error("NUM$", "(integer/float)", args)
    return format_value(number)


def builtin_val(args, rng):
    (text,) = args
    if not isinstance(text, str):
        raise _signature_error("VAL", "(string)", args)
    try:
        return parse_int32(text.strip())
    except ValueError as e:
        raise BasicRuntimeError(f"VAL cannot convert '{text}' to an integer") from e


def builtin_valf(args, rng):
    (text,) = args
    if not isinstance(text, str):
        raise _signature_error("VALF", "(string)", args)
    try:
        return to_float32(float(text.strip()))
    except ValueError as e:
        raise BasicRuntimeError(f"VALF cannot convert '{text}' to a float") from e


def float_pow(base, exponent) -> float:
    # math.pow raises where IEEE pow gives a signed infinity
    try:
        return math.pow(base, exponent)
    except OverflowError:
        negative = base < 0 and exponent % 2 == 1
    except ValueError:
        if not (base == 0 and exponent < 0):
            return math.nan
        negative = math.copysign(1.0, base) < 0 and exponent % 2 == 1
    return -math.inf if negative else math.inf


def builtin_pow(args, rng):
    base, exponent = args
    if not (is_int(base) and is_int(exponent)):
        raise _signature_error("POW", "(integer, integer)", args)
    return saturate_int32(float_pow(base, exponent))


def builtin_powf(args, rng):
    base, exponent = args
    if not (isinstance(base, float) and isinstance(exponent, float)):
        raise _signature_error("POWF", "(float, float)", args)
    return to_float32(float_pow(base, exponent))


def builtin_int(args, rng):
    (number,) = args
    if not is_number(number):
        raise _signature_error("INT", "(integer/float)", args)
    if is_int(number):
        return number
    return saturate_int32(number)


def builtin_float(args, rng):
    (number,) = args
    if not is_number(number):
        raise _signature_error("FLOAT", "(integer/float)", args)
    return to_float32(float(number))


class BuiltIn:
    def __init__(self, name, impl, arities):
        self.name = name
        self.impl = impl
        self.arities = arities  # allowed argument counts

    def __call__(self, args, rng):
        if len(args) not in self.arities:
            expected = " or ".join(str(n) for n in self.arities)
            raise BasicRuntimeError(f"{self.name}() expects {expected} argument(s), got {len(args)}")
        return self.impl(args, rng)


BUILTINS = {
    "RANDOM": BuiltIn("RANDOM", builtin_random, (0, 2)),
    "RANDOMF": BuiltIn("RANDOMF", builtin_randomf, (0, 2)),
    "LEFT$": BuiltIn("LEFT$", builtin_left, (2,)),
    "RIGHT$": BuiltIn("RIGHT$", builtin_right, (2,)),
    "MID$": BuiltIn("MID$", builtin_mid, (3,)),
    "NUM$": BuiltIn("NUM$", builtin_num, (1,)),
    "VAL": BuiltIn("VAL", builtin_val, (1,)),
    "VALF": BuiltIn("VALF", builtin_valf, (1,)),
    "POW": BuiltIn("POW", builtin_pow, (2,)),
    "POWF": BuiltIn("POWF", builtin_powf, (2,)),
    "INT": BuiltIn("INT", builtin_int, (1,)),
    "FLOAT": BuiltIn("FLOAT", builtin_float, (1,)),
}

# older spellings of the float variants
ALIASES = {
    "RANDOM%": "RANDOMF",
    "VAL%": "VALF",
    "POW%": "POWF",
}


def resolve_builtin(name: str) -> str | None:
    """Return the canonical built-in name for `name`, or None if unknown."""
    upper = name.upper()
    upper = ALIASES.get(upper, upper)
    if upper in BUILTINS:
        return upper
    return None


def call_builtin(name, args, rng=None):
    if name not in BUILTINS:
        raise BasicRuntimeError(f"Unknown built-in function: {name}")
    return BUILTINS[name](list(args), rng or random)
