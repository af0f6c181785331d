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

import collections
import logging
import threading

import mmrproof.proof

from mmrproof.position import (find_peaks, height, is_valid_mmr_size,
                               leaf_count_to_mmr_size, path_to_peak)
from mmrproof.serialize import (ZERO_DIGEST, DeserializationError, Digest,
                                Serializer, UInt64)

"""Merkle Mountain Range support

Motivation
==========

We have a growing list of message digests D = {d_0 ... d_n}, possibly with
duplicates. We wish to hash that list into a single short commitment MMR(D),
update that commitment cheaply as digests are appended, and prove that
D[i] = d to anyone holding only MMR(D), in O(log n) time and space.


Informal description
====================

As digests are accumulated we hash them into perfect binary trees, building up
the largest perfect binary trees possible as we go. For instance after
accumulating 14 digests:

       /\\
      /  \\
     /\\  /\\  /\\
    /\\/\\/\\/\\/\\/\\/\\

The digests are divided into three perfect "mountains" containing 8, 4, and 2
digests respectively. The roots of those mountains are the peaks; the root of
the whole MMR commits to the peaks and to the total number of nodes, see
mmrproof.proof for the exact construction.

Every node, leaf or inner, gets the next position as it is created, and once
written a position's digest never changes. Appending a digest writes the leaf,
then merges the two newest peaks for as long as they're the same height.
Nothing else is touched, so appends are O(log n).

Leaves are stored as-is; there's no separate leaf hash. Inner nodes are
H(left || right).


Concurrency
===========

A MerkleMountainRange may be shared between threads. Every operation that
reads or writes state takes the instance's lock, so readers see the state
either before or after an append, never part way through one.
"""

logger = logging.getLogger(__name__)

AppendResult = collections.namedtuple('AppendResult',
        ['leaves_count', 'elements_count', 'element_index', 'root_hash'])


class InvalidIndexError(mmrproof.proof.MerkleMountainRangeError, IndexError):
    """Position out of range for the MMR"""

class StaleProofError(mmrproof.proof.MerkleMountainRangeError):
    """Proof made against a different size of MMR"""
    def __init__(self, proof_elements_count, current_elements_count):
        self.proof_elements_count = proof_elements_count
        self.current_elements_count = current_elements_count
        super().__init__('Proof is for %d elements; MMR has %d' % \
                            (proof_elements_count, current_elements_count))


class MerkleMountainRange(Serializer):
    """Merkle Mountain Range

    Append-only. Subclass and override HASHER to use a different hash
    function; HASHER must provide hash_pair(left, right).
    """

    HASHER = mmrproof.proof.DEFAULT_HASHER

    def __init__(self, iterable=()):
        """Create a new merkle mountain range"""
        self._lock = threading.RLock()
        self._reset()
        self.extend(iterable)

    def _reset(self):
        self.leaves_count = 0
        self.elements_count = 0
        self.root_hash = ZERO_DIGEST

        self._hashes = {}

        # Root of every size we've been, for checking proofs made against an
        # earlier size.
        self._roots = {0: ZERO_DIGEST}

    def __len__(self):
        return self.leaves_count

    def __iter__(self):
        """Iterate over the appended digests, oldest first"""
        with self._lock:
            leaves = [digest for position, digest in self._hashes.items()
                             if height(position) == 0]
        yield from leaves

    def __setitem__(self, idx, value):
        raise TypeError('MerkleMountainRanges are append-only')

    def __delitem__(self, idx):
        raise TypeError('MerkleMountainRanges are append-only')

    def _snapshot(self):
        with self._lock:
            return (self.leaves_count, self.root_hash, dict(self._hashes))

    def __eq__(self, other):
        if other.__class__ is not self.__class__:
            return NotImplemented
        return self._snapshot() == other._snapshot()

    __hash__ = None

    def __repr__(self):
        return '%s(leaves_count=%d, elements_count=%d, root_hash=%s)' % \
                (self.__class__.__qualname__, self.leaves_count, self.elements_count,
                 self.root_hash.hex())

    def get_hash(self, position):
        """Return the digest stored at a position"""
        with self._lock:
            try:
                return self._hashes[position]
            except KeyError:
                raise InvalidIndexError('Position out of range; 1 <= %r <= %d' % \
                                            (position, self.elements_count)) from None

    def _retrieve_peaks_hashes(self, peaks):
        return [self._hashes[peak] for peak in peaks]

    def _calc_root_hash(self, elements_count, peaks_hashes):
        bag = mmrproof.proof.bag_peaks(peaks_hashes, self.HASHER)
        return mmrproof.proof.calc_root_hash(elements_count, bag, self.HASHER)

    def append(self, value):
        """Append a digest to the end of the MMR

        Returns an AppendResult with the new counts, the position the digest
        was stored at, and the new root.
        """
        Digest.check_instance(value)

        with self._lock:
            peaks = self._retrieve_peaks_hashes(find_peaks(self.elements_count))

            position = self.elements_count + 1
            element_index = position
            self._hashes[position] = value
            peaks.append(value)

            # The position after us is the parent of the two newest peaks
            # whenever it's higher than them. Each merge climbs one level, so
            # there can't be more merges than bits in the position.
            for merge_height in range(position.bit_length()):
                if height(position + 1) <= merge_height:
                    break

                assert len(peaks) >= 2
                right = peaks.pop()
                left = peaks.pop()

                position += 1
                parent = self.HASHER.hash_pair(left, right)
                self._hashes[position] = parent
                peaks.append(parent)

            self.elements_count = position
            self.leaves_count += 1
            self.root_hash = self._calc_root_hash(position, peaks)
            self._roots[position] = self.root_hash

            logger.debug('Appended leaf %d at position %d; %d elements, %d peaks',
                         self.leaves_count, element_index, self.elements_count, len(peaks))

            return AppendResult(self.leaves_count, self.elements_count,
                                element_index, self.root_hash)

    def extend(self, values):
        """Append digests from an iterable

        Returns the AppendResult of the last digest appended, or None if there
        were none.
        """
        r = None
        with self._lock:
            for value in values:
                r = self.append(value)
        return r

    def get_peaks(self):
        """Return the digests of the current peaks, left to right"""
        with self._lock:
            return self._retrieve_peaks_hashes(find_peaks(self.elements_count))

    def clear(self):
        """Discard everything, returning to an empty MMR"""
        with self._lock:
            logger.info('Clearing MMR of %d leaves', self.leaves_count)
            self._reset()

    def root_at(self, elements_count):
        """Root of this MMR when it had elements_count elements

        Raises KeyError if the MMR was never that size.
        """
        with self._lock:
            return self._roots[elements_count]

    def get_proof(self, leaf_index, elements_count=None):
        """Create an inclusion proof for the element at a position

        By default the proof is against the current root. Pass elements_count
        to prove against the root of an earlier size instead.
        """
        if leaf_index.__class__ is not int:
            raise TypeError('Expected int; got %r' % leaf_index.__class__)

        with self._lock:
            if elements_count is None:
                elements_count = self.elements_count

            elif elements_count.__class__ is not int:
                raise TypeError('Expected int; got %r' % elements_count.__class__)

            elif not (elements_count <= self.elements_count and is_valid_mmr_size(elements_count)):
                raise InvalidIndexError('MMR was never %d elements; it has %d' % \
                                            (elements_count, self.elements_count))

            if not (1 <= leaf_index <= elements_count):
                raise InvalidIndexError('Index out of range; 1 <= %d <= %d' % \
                                            (leaf_index, elements_count))

            path, peak = path_to_peak(leaf_index, elements_count)

            logger.debug('Proving position %d against %d elements; %d siblings, peak %d',
                         leaf_index, elements_count, len(path), peak)

            return mmrproof.proof.Proof(
                    element_index=leaf_index,
                    element_hash=self._hashes[leaf_index],
                    siblings_hashes=[self._hashes[sibling] for sibling, is_right in path],
                    peaks_hashes=self._retrieve_peaks_hashes(find_peaks(elements_count)),
                    elements_count=elements_count)

    def get_proofs(self, leaf_indexes):
        """Create inclusion proofs for several positions

        All proofs are made against the same root.
        """
        with self._lock:
            return [self.get_proof(leaf_index) for leaf_index in leaf_indexes]

    def verify_proof(self, value, proof, allow_stale=False):
        """Verify a proof against this MMR's root

        Raises StaleProofError if the proof was made against a different size
        of MMR. With allow_stale the proof is instead checked against the root
        this MMR had at that size.
        """
        with self._lock:
            if proof.elements_count == self.elements_count:
                root = self.root_hash

            elif not allow_stale:
                raise StaleProofError(proof.elements_count, self.elements_count)

            else:
                try:
                    root = self._roots[proof.elements_count]
                except KeyError:
                    raise StaleProofError(proof.elements_count, self.elements_count) from None

        return mmrproof.proof.verify_proof(value, proof, root, self.HASHER)

    @classmethod
    def check_instance(cls, value):
        if not isinstance(value, cls):
            raise TypeError('Expected %s; got %r' % (cls.__qualname__, value.__class__))

    @classmethod
    def ctx_serialize(cls, self, ctx):
        cls.check_instance(self)
        with self._lock:
            ctx.write_obj(self.leaves_count, UInt64)
            ctx.write_obj(self.elements_count, UInt64)
            ctx.write_obj(self.root_hash, Digest)

            ctx.write_obj(len(self._hashes), UInt64)
            for position, digest in self._hashes.items():
                ctx.write_obj(position, UInt64)
                ctx.write_obj(digest, Digest)

    @classmethod
    def ctx_deserialize(cls, ctx):
        leaves_count = ctx.read_obj(UInt64)
        elements_count = ctx.read_obj(UInt64)
        root_hash = ctx.read_obj(Digest)

        if elements_count != leaf_count_to_mmr_size(leaves_count):
            raise DeserializationError('%d leaves make %d elements; got %d' % \
                    (leaves_count, leaf_count_to_mmr_size(leaves_count), elements_count))

        n = ctx.read_obj(UInt64)
        if n != elements_count:
            raise DeserializationError('Expected %d hashes; got %d' % (elements_count, n))

        self = cls()
        hashes = self._hashes
        for expected_position in range(1, n + 1):
            position = ctx.read_obj(UInt64)
            if position != expected_position:
                raise DeserializationError('Expected position %d; got %d' % \
                                                (expected_position, position))

            digest = ctx.read_obj(Digest)

            # Inner nodes must commit to their children; left child is the
            # root of a perfect tree one level down, right child is just
            # before us.
            h = height(position)
            if h:
                left = hashes[position - (1 << h)]
                right = hashes[position - 1]
                if digest != cls.HASHER.hash_pair(left, right):
                    raise DeserializationError('Position %d does not commit to its children' % position)

            hashes[position] = digest

        for leaf_count in range(1, leaves_count + 1):
            size = leaf_count_to_mmr_size(leaf_count)
            self._roots[size] = self._calc_root_hash(size,
                                    self._retrieve_peaks_hashes(find_peaks(size)))

        self.leaves_count = leaves_count
        self.elements_count = elements_count
        self.root_hash = self._roots[elements_count]

        if self.root_hash != root_hash:
            raise DeserializationError('Root hash mismatch; expected %s, got %s' % \
                                        (self.root_hash.hex(), root_hash.hex()))
        return self
