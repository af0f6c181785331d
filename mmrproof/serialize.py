# Copyright (C) 2026 The python-mmrproof developers
#
# This file is part of python-mmrproof.
#
# It is subject to the license terms in the LICENSE file found in the top-level
# directory of this distribution.
#
# No part of python-mmrproof, including this file, may be copied, modified,
# propagated, or distributed except according to the terms contained in the
# LICENSE file.

import hashlib
import hmac
import io
import uuid

"""Deterministic object (de)serialization, and hashing

Motivation
==========

Merkle mountain ranges and their proofs are handed across trust boundaries: a
store is saved and reloaded, a proof is built by one party and checked by
another. Standard serialization formats rarely guarantee a single canonical
encoding for a given value, so we use a small deterministic format of our own.


Basic grammar
=============

FixedBytes(n) - A fixed length byte array

UInt(max) - An unsigned, little-endian, base128 (LEB128) integer in the range
            0 <= i <= max. Only the shortest encoding is accepted.

DigestList - A UInt count followed by that many digests.

Struct - Zero or more of the above, (de)serialized in a fixed order to form a
         structure.


Hashing
=======

All hashing goes through a HashTag, a two-input hash function domain-separated
by a UUID. Different tags never produce related digests, so two structures
using different tags can't be confused for each other.

"""

DIGEST_LENGTH = 32

# Hash of nothing; the root of an empty MMR and the bag of zero peaks.
ZERO_DIGEST = b'\x00' * DIGEST_LENGTH

class DeserializationError(Exception):
    """Base class for all errors encountered during deserialization"""

class TruncationError(DeserializationError):
    """Truncated data encountered while deserializing"""


class SerializerTypeError(TypeError):
    """Wrong type for specified serializer"""

class SerializerValueError(ValueError):
    """Inappropriate value to be serialized (of correct type)"""


class HashTag:
    """Domain-separated two-input hash function

    HMAC-SHA256 keyed with the 16 bytes of a UUID. Calling the tag returns a
    fresh hmac object; hash_pair() is the two-input hash used to build merkle
    mountain ranges.
    """
    __slots__ = ['tag']

    def __init__(self, tag):
        self.tag = uuid.UUID(tag).bytes

    def __call__(self, msg=b''):
        return hmac.new(self.tag, msg, hashlib.sha256)

    def hash_pair(self, left, right):
        """Hash two digests together, order sensitive"""
        return self(left + right).digest()

    def __repr__(self):
        return '%s(%r)' % (self.__class__.__qualname__, str(uuid.UUID(bytes=self.tag)))


class SerializationContext:
    """Context for serialization

    Allows multiple serialization targets to share the same codebase.
    """

    def write_varuint(self, value):
        """Write a variable-length unsigned integer"""
        raise NotImplementedError

    def write_bytes(self, value):
        """Write fixed-length bytes"""
        raise NotImplementedError

    def write_obj(self, value, serialization_class=None):
        """Write an object

        If serialization_class is specified, that class is used as the
        Serializer; otherwise value.__class__ is used.
        """
        raise NotImplementedError

class DeserializationContext:
    """Context for deserialization

    Allows multiple deserialization sources to share the same codebase.
    """
    def read_varuint(self):
        """Read a variable-length unsigned integer"""
        raise NotImplementedError

    def read_bytes(self, expected_length):
        """Read fixed-length bytes"""
        raise NotImplementedError

    def read_obj(self, serialization_class):
        """Read an object"""
        raise NotImplementedError


class StreamSerializationContext(SerializationContext):
    def __init__(self, fd):
        """Serialize to a stream"""
        self.fd = fd

    def write_varuint(self, value):
        # unsigned little-endian base128 format (LEB128)
        if value == 0:
            self.fd.write(b'\x00')

        else:
            while value != 0:
                b = value & 0b01111111
                if value > 0b01111111:
                    b |= 0b10000000
                self.fd.write(bytes([b]))
                if value <= 0b01111111:
                    break
                value >>= 7

    def write_bytes(self, value):
        self.fd.write(value)

    def write_obj(self, value, serialization_class=None):
        if serialization_class is None:
            serialization_class = value.__class__
        serialization_class.ctx_serialize(value, self)

class StreamDeserializationContext(DeserializationContext):
    def __init__(self, fd):
        """Deserialize from a stream"""
        self.fd = fd

    def fd_read(self, l):
        r = self.fd.read(l)
        if len(r) != l:
            raise TruncationError('Tried to read %d bytes but got only %d bytes' % \
                                        (l, len(r)))
        return r

    def read_varuint(self):
        value = 0
        shift = 0

        while True:
            b = self.fd_read(1)[0]
            if b == 0 and shift:
                # A zero continuation byte adds nothing; the same integer has
                # a shorter encoding.
                raise DeserializationError('Non-canonical varuint encoding')
            value |= (b & 0b01111111) << shift
            if not (b & 0b10000000):
                break
            shift += 7

        return value

    def read_bytes(self, expected_length):
        return self.fd_read(expected_length)

    def read_obj(self, serialization_class):
        return serialization_class.ctx_deserialize(self)

class BytesSerializationContext(StreamSerializationContext):
    def __init__(self):
        """Serialize to bytes"""
        super().__init__(io.BytesIO())

    def getbytes(self):
        """Return the bytes serialized to date"""
        return self.fd.getvalue()

class BytesDeserializationContext(StreamDeserializationContext):
    def __init__(self, buf):
        """Deserialize from bytes"""
        super().__init__(io.BytesIO(buf))

    def assert_at_end(self):
        """Raise DeserializationError if any bytes remain unread"""
        junk = self.fd.read()
        if junk:
            raise DeserializationError('%d bytes of trailing junk after object' % len(junk))

class Serializer:
    """(De)serialize an instance of a class

    Base class for all serialization classes. The actual serialization is
    performed by serialization *instances*, not classes, and an instance may be
    its own serializer.
    """
    __slots__ = []


    @classmethod
    def check_instance(cls, instance):
        """Check that an instance can be serialized by this serializer

        Raises SerializerTypeError if the instance class is not the expected
        class, and SerializerValueError if the class is correct, but the actual
        value is incorrect. (e.g. an out of range integer)
        """
        raise NotImplementedError

    @classmethod
    def ctx_serialize(cls, self, ctx):
        """Serialize to a context"""
        raise NotImplementedError

    @classmethod
    def ctx_deserialize(cls, ctx):
        """Deserialize from a context"""
        raise NotImplementedError

    @classmethod
    def serialize(cls, self):
        """Serialize to bytes"""
        ctx = BytesSerializationContext()
        cls.ctx_serialize(self, ctx)
        return ctx.getbytes()

    @classmethod
    def deserialize(cls, serialized_value):
        """Deserialize from bytes

        The whole of serialized_value must be consumed.
        """
        ctx = BytesDeserializationContext(serialized_value)
        r = cls.ctx_deserialize(ctx)
        ctx.assert_at_end()
        return r

class FixedBytes(Serializer):
    """Serialization of fixed-length byte arrays"""
    EXPECTED_LENGTH = None

    @classmethod
    def check_instance(cls, value):
        if value.__class__ is not bytes:
            raise SerializerTypeError('Expected bytes; got %r' % value.__class__)

        if len(value) != cls.EXPECTED_LENGTH:
            raise SerializerValueError('Expected bytes to be of len %d; got %d' % (cls.EXPECTED_LENGTH, len(value)))

    @classmethod
    def ctx_serialize(cls, self, ctx):
        cls.check_instance(self)
        ctx.write_bytes(self)

    @classmethod
    def ctx_deserialize(cls, ctx):
        return ctx.read_bytes(cls.EXPECTED_LENGTH)

class Digest(FixedBytes):
    EXPECTED_LENGTH = DIGEST_LENGTH

class UInt(Serializer):
    """Serialization of unsigned integers"""
    MAX_INT = None

    @classmethod
    def check_instance(cls, value):
        if value.__class__ is not int:
            raise SerializerTypeError('Expected an int; got %r' % value.__class__)

        if not (0 <= value <= cls.MAX_INT):
            raise SerializerValueError('Integer out of range; 0 <= %d <= %d' % (value, cls.MAX_INT))

    @classmethod
    def ctx_serialize(cls, self, ctx):
        cls.check_instance(self)
        ctx.write_varuint(self)

    @classmethod
    def ctx_deserialize(cls, ctx):
        r = ctx.read_varuint()
        if not (0 <= r <= cls.MAX_INT):
            raise DeserializationError('Deserialized integer out of range; 0 <= %d <= %d' % (r, cls.MAX_INT))
        return r

class UInt64(UInt):
    MAX_INT = 2**64-1

class DigestList(Serializer):
    """Serialization of variable-length lists of digests"""
    @classmethod
    def check_instance(cls, value):
        if not isinstance(value, (list, tuple)):
            raise SerializerTypeError('Expected list or tuple; got %r' % value.__class__)
        for digest in value:
            Digest.check_instance(digest)

    @classmethod
    def ctx_serialize(cls, self, ctx):
        cls.check_instance(self)
        ctx.write_varuint(len(self))
        for digest in self:
            ctx.write_bytes(digest)

    @classmethod
    def ctx_deserialize(cls, ctx):
        n = UInt64.ctx_deserialize(ctx)
        return tuple(Digest.ctx_deserialize(ctx) for i in range(n))
