from __future__ import annotations

import abc

import torch


class DataType(abc.ABC):
    @property
    @abc.abstractmethod
    def states(self) -> tuple[str, ...]:
        pass

    @property
    @abc.abstractmethod
    def state_count(self) -> int:
        pass

    @abc.abstractmethod
    def encoding(self, string: str) -> int:
        pass

    def encode(self, sequence: str) -> torch.Tensor:
        """Encode a sequence into a tensor of state indices.

        Symbols outside the alphabet are encoded as ``state_count``.
        """
        return torch.tensor(list(map(self.encoding, sequence)), dtype=torch.long)


class AbstractDataType(DataType, abc.ABC):
    def __init__(self, states: tuple[str, ...]):
        self._states = states
        self._state_count = len(states)

    @property
    def states(self) -> tuple[str, ...]:
        return self._states

    @property
    def state_count(self) -> int:
        return self._state_count


class AminoAcidDataType(AbstractDataType):
    """The 20 amino acids in PAML order.

    The order of the states defines the row and column indexing of every count
    and rate matrix.
    """

    AMINO_ACIDS = "ARNDCQEGHILKMFPSTWYV"

    # 20 marks symbols outside the alphabet (gaps, ambiguity codes, stop)
    AMINO_ACIDS_STATES = [20] * 128
    for i, aa in enumerate(AMINO_ACIDS):
        AMINO_ACIDS_STATES[ord(aa)] = i
        AMINO_ACIDS_STATES[ord(aa.lower())] = i
    AMINO_ACIDS_STATES = tuple(AMINO_ACIDS_STATES)

    def __init__(self):
        super().__init__(tuple(AminoAcidDataType.AMINO_ACIDS))

    def encoding(self, string) -> int:
        code = ord(string)
        if code >= len(AminoAcidDataType.AMINO_ACIDS_STATES):
            return self.state_count
        return AminoAcidDataType.AMINO_ACIDS_STATES[code]
