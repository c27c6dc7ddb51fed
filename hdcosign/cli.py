#!/usr/bin/env python
#
# (c) Copyright 2021 by Coinkite Inc. This file is covered by license found in COPYING-CC.
#
# To use this, install with:
#
#   pip install --editable '.[cli]'
#
# That will create the command "hdcosign" in your path.
#
# Developer tool: decode cosigner records and check their signatures.
#
import click, sys, json
from binascii import a2b_hex

from hdcosign.constants import NETWORKS
from hdcosign.cosigner import Cosigner
from hdcosign.exceptions import CosignerError
from hdcosign.utils import B2A
from hdcosign import __version__

# dict of options that apply to all commands
global global_opts
global_opts = dict()

# Change this (or use --verbose) to see hashed messages
VERBOSE = False

# Cleanup display (supress traceback) for user-feedback exceptions
_sys_excepthook = sys.excepthook
def my_hook(ty, val, tb):
    if issubclass(ty, CosignerError):
        print("FATAL: %s" % val, file=sys.stderr)
    else:
        return _sys_excepthook(ty, val, tb)
sys.excepthook=my_hook

def fail(msg):
    # show message and stop
    click.echo(f"FAILURE: {msg}", err=True)
    sys.exit(1)

def decode_hex(value, what):
    try:
        return a2b_hex(value.strip())
    except ValueError:
        fail(f"{what} is not hex")

def get_cosigner(raw_hex):
    # decode a record given as hex on the command line
    try:
        return Cosigner.from_raw(decode_hex(raw_hex, 'record'), global_opts.get('network'))
    except CosignerError as exc:
        fail(f"cannot decode record: {exc}")

def show_message(label, msg):
    if VERBOSE:
        click.echo(f"{label}: {B2A(msg)}", err=True)

def dump_dict(d):
    for k,v in d.items():
        if isinstance(v, (bytes, bytearray)):
            v = B2A(v)

        click.echo('%s: %s' % (k, v))

# Accept any prefix of a command name.
#
# from <https://click.palletsprojects.com/en/8.0.x/advanced/?#command-aliases>
class AliasedGroup(click.Group):
    def get_command(self, ctx, cmd_name):
        rv = click.Group.get_command(self, ctx, cmd_name)
        if rv is not None:
            return rv
        matches = [x for x in self.list_commands(ctx)
                   if x.startswith(cmd_name)]
        if not matches:
            return None
        elif len(matches) == 1:
            return click.Group.get_command(self, ctx, matches[0])
        ctx.fail(f"Abiguous command. Pick one of: {' | '.join(sorted(matches))}")

    def resolve_command(self, ctx, args):
        # always return the full command name
        _, cmd, args = super().resolve_command(ctx, args)
        return cmd.name, cmd, args


#
# Options we want for all commands
#
@click.group(cls=AliasedGroup)
@click.option('--network', '-n', default=None, type=click.Choice(sorted(NETWORKS)),
                    help="Expected network of account keys (default: detect)")
@click.option('--verbose', '-v', is_flag=True,
                    help="Show the protocol messages being hashed.")
@click.option('--pdb', is_flag=True,
                    help="Prepare patient for surgery to remove bugs.")
@click.version_option(version=__version__)
def main(**kws):
    '''
    Inspect cosigner records of a shared HD wallet, and check the
    ownership proof and join signatures they carry.

    Records are given as hex of their binary form.
    You can use "dec" or "d" for "decode": any distinct prefix for all commands.
    '''
    # implement PDB option here
    if kws.pop('pdb', False):
        import pdb
        def doit(ex_cls, ex, tb):
            pdb.pm()
        sys.excepthook = doit

    global VERBOSE
    VERBOSE = kws.pop('verbose', False)

    # global options, mostly not considered here
    global global_opts
    global_opts.update(kws)

@main.command('decode')
@click.argument('raw_hex', metavar="HEX")
@click.option('--details', '-d', is_flag=True, help='Include token and join signature')
def decode_record(raw_hex, details):
    "Decode a binary record and show it as JSON"
    cos = get_cosigner(raw_hex)

    click.echo(json.dumps(cos.to_json(details=details), indent=2))

@main.command('encode')
@click.argument('infile', type=click.File('rt'), metavar="FILE.json")
@click.option('--details', '-d', is_flag=True, help='Input includes token and join signature')
def encode_record(infile, details):
    "Encode a JSON record (use - for stdin) into binary, shown as hex"
    try:
        cos = Cosigner.from_json(infile.read(), details=details,
                                    network=global_opts.get('network'))
        raw = cos.to_raw(global_opts.get('network'))
    except ValueError as exc:
        fail(f"bad record: {exc}")

    click.echo(B2A(raw))

@main.command('http')
@click.argument('raw_hex', metavar="HEX")
def http_options(raw_hex):
    "Show the values sent to the HTTP API for this record"
    cos = get_cosigner(raw_hex)

    dump_dict(cos.to_http_options())

@main.command('proof-hash')
@click.argument('raw_hex', metavar="HEX")
def proof_hash(raw_hex):
    "Show digest the cosigner must sign to prove ownership of its account key"
    cos = get_cosigner(raw_hex)

    show_message('message', cos.get_proof_message())
    show_message('proof key', cos.get_proof_key().sec())

    click.echo(B2A(cos.get_proof_hash()))

@main.command('join-hash')
@click.argument('raw_hex', metavar="HEX")
@click.argument('wallet_name')
def join_hash(raw_hex, wallet_name):
    "Show digest the inviter signs to let this cosigner join WALLET_NAME"
    cos = get_cosigner(raw_hex)

    try:
        show_message('message', cos.get_join_message(wallet_name))
        click.echo(B2A(cos.get_join_hash(wallet_name)))
    except CosignerError as exc:
        fail(str(exc))

@main.command('verify-proof')
@click.argument('raw_hex', metavar="HEX")
@click.argument('sig_hex', metavar="SIGNATURE")
def verify_proof(raw_hex, sig_hex):
    "Check an ownership proof signature (65 bytes, hex)"
    cos = get_cosigner(raw_hex)
    sig = decode_hex(sig_hex, 'signature')

    show_message('message', cos.get_proof_message())

    if not cos.verify_proof(sig):
        fail("proof signature does not match account key")

    click.echo("OK")

@main.command('verify-join')
@click.argument('raw_hex', metavar="HEX")
@click.argument('pubkey_hex', metavar="PUBKEY")
@click.argument('wallet_name')
def verify_join(raw_hex, pubkey_hex, wallet_name):
    "Check record's join signature was made by PUBKEY (inviter) for WALLET_NAME"
    cos = get_cosigner(raw_hex)
    pubkey = decode_hex(pubkey_hex, 'pubkey')

    if len(pubkey) != 33 or pubkey[0] not in { 2, 3 }:
        fail("expecting 33 byte compressed pubkey")

    if not cos.is_joined():
        fail("record has no join signature")

    show_message('message', cos.get_join_message(wallet_name))

    if not cos.verify_join_signature(pubkey, wallet_name):
        fail("join signature not valid for that key and wallet")

    click.echo("OK")

# EOF
