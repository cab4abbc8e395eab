# Vault: Secure Password Generator
#
# Random passwords drawn from the OS CSPRNG (secrets module).
#
# Character classes in priority order: uppercase, lowercase, digits, symbols.
# Each selected class contributes one guaranteed character. If the target
# length is shorter than the number of selected classes, guaranteed
# characters are taken in priority order and the lowest-priority classes
# are dropped (e.g. length 2 with all classes -> one upper, one lower).

import secrets
import string
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..core.errors import ValidationError

UPPERCASE = string.ascii_uppercase
LOWERCASE = string.ascii_lowercase
NUMBERS = string.digits
SYMBOLS = "!@#$%^&*()_+-=[]{}|;:,.<>?"

DEFAULT_LENGTH = 16

_sysrand = secrets.SystemRandom()


@dataclass
class PasswordOptions:
    """Generator settings. All classes are on by default."""

    length: int = DEFAULT_LENGTH
    include_uppercase: bool = True
    include_lowercase: bool = True
    include_numbers: bool = True
    include_symbols: bool = True

    def selected_pools(self) -> List[str]:
        """Character pools for the selected classes, highest priority first.

        Falls back to lowercase when nothing is selected.
        """
        flags: Tuple[Tuple[bool, str], ...] = (
            (self.include_uppercase, UPPERCASE),
            (self.include_lowercase, LOWERCASE),
            (self.include_numbers, NUMBERS),
            (self.include_symbols, SYMBOLS),
        )
        pools = [pool for enabled, pool in flags if enabled]
        return pools or [LOWERCASE]


def generate_password(options: Optional[PasswordOptions] = None) -> str:
    """
    Generate a random password satisfying the selected character classes.

    Args:
        options: PasswordOptions (defaults: 16 chars, all classes)

    Returns:
        Password of exactly ``options.length`` characters

    Raises:
        ValidationError: If the length is negative
    """
    options = options or PasswordOptions()
    if options.length < 0:
        raise ValidationError("Password length cannot be negative", field="length")

    pools = options.selected_pools()
    charset = "".join(pools)

    chars = [secrets.choice(pool) for pool in pools[:options.length]]
    chars.extend(
        secrets.choice(charset) for _ in range(options.length - len(chars))
    )

    # Guaranteed characters must not sit at predictable positions
    _sysrand.shuffle(chars)
    return "".join(chars)
