"""Top-level script environment."""
import argparse

from ipcrypt import cipher
from ipcrypt import differential
from ipcrypt.representation import RepresentationError


def get_key(args, parser):
    if args.hex_key:
        try:
            return bytes.fromhex(args.key)
        except ValueError as e:
            parser.error("invalid hexadecimal key: {}".format(e))
    return args.key.encode()


def positive_int(string):
    value = int(string)
    if value <= 0:
        raise argparse.ArgumentTypeError("{} is not a positive integer".format(string))
    return value


def seed_int(string):
    value = int(string)
    if not 0 <= value < 2 ** 32:
        raise argparse.ArgumentTypeError("{} is not a 32-bit unsigned integer".format(string))
    return value


parser = argparse.ArgumentParser(prog="ipcrypt")
subparsers = parser.add_subparsers(dest="command")
subparsers.required = True

for command in ["encrypt", "decrypt"]:
    subparser = subparsers.add_parser(command)
    subparser.add_argument("value", help="dotted-quad IPv4 address (or integer with --int)")
    subparser.add_argument("-k", "--key", required=True, help="16-byte key")
    subparser.add_argument("--hex-key", action="store_true", help="the key is given as 32 hexadecimal digits")
    subparser.add_argument("--int", action="store_true", help="the value is a 32-bit integer")

attack_parser = subparsers.add_parser("attack")
attack_parser.add_argument("-k", "--key", help="16-byte key (random by default)")
attack_parser.add_argument("--hex-key", action="store_true", help="the key is given as 32 hexadecimal digits")
attack_parser.add_argument("-n", "--samples", type=positive_int, default=differential.DEFAULT_SAMPLES)
attack_parser.add_argument("-s", "--seed", type=seed_int, default=0)
attack_parser.add_argument("--exhaustive", action="store_true")
attack_parser.add_argument("-f", "--filename")

args = parser.parse_args()

if args.command in ["encrypt", "decrypt"]:
    key = get_key(args, parser)
    value = args.value
    if args.int:
        try:
            value = int(value, 0)
        except ValueError:
            parser.error("invalid integer {!r}".format(value))

    function = cipher.encrypt if args.command == "encrypt" else cipher.decrypt
    try:
        print(function(value, key))
    except RepresentationError as e:
        parser.error(str(e))
elif args.command == "attack":
    key = get_key(args, parser) if args.key is not None else None
    try:
        differential.attack(key, args.samples, args.exhaustive, args.seed, args.filename)
    except ValueError as e:
        parser.error(str(e))
