# dissonance_models.py

"""
Modelos de dissonância baseados em interferência espectral.

Um modelo recebe uma lista ordenada de ``OvertoneSpectrum`` e devolve um
valor escalar de dissonância. A família de interferência espectral soma uma
função de rugosidade sobre cada par não ordenado de elementos activos
(fundamentais e parciais); as subclasses só fornecem a rugosidade.

Os modelos comportam-se como valores: o calculador guarda ``model.clone()``
e nunca partilha a instância de quem o chamou.
"""

from __future__ import annotations

import copy
import logging
import math
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from overtone_spectrum import OvertoneSpectrum

logger = logging.getLogger(__name__)

# Constantes da curva de Plomp-Levelt (Sethares, 2005)
MAX_DISSONANCE = 0.24      # x*
CURVE_INTERP_1 = 0.0207    # s1
CURVE_INTERP_2 = 18.96     # s2
CURVE_RATE_1 = -3.51       # b1
CURVE_RATE_2 = -5.75       # b2
CURVE_FIT_1 = 5.0          # p1
CURVE_FIT_2 = -5.0         # p2

# -----------------------------------------------------------------------------
# CLASSES BASE
# -----------------------------------------------------------------------------

class DissonanceModel(ABC):
    """Classe base abstrata para modelos de dissonância."""

    def __init__(self, name: str, description: str = ""):
        self.name = name
        self.description = description
        logger.debug(f"Modelo de dissonância inicializado: {name}")

    @abstractmethod
    def calculate_dissonance(self, spectra: Sequence[OvertoneSpectrum],
                             sum_partial_dissonances: bool = False) -> float:
        """Dissonância de um conjunto de espectros a soar em simultâneo."""

    def clone(self) -> "DissonanceModel":
        """Cópia independente, para guardar dentro de um calculador."""
        return copy.deepcopy(self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class SpectralInterferenceModel(DissonanceModel):
    """
    Soma a rugosidade entre cada par de parciais (fundamentais incluídas):

        D = soma sobre os pares não ordenados (i, j) de d(f_i, f_j, a_i, a_j)

    Cada par é visitado uma única vez:
      1. fundamental contra fundamental, para cada par de espectros;
      2. cada parcial contra todas as fundamentais (incluindo a sua);
      3. cada parcial contra as parciais seguintes do seu espectro e todas
         as parciais dos espectros seguintes.

    Um espectro silenciado, ou uma fundamental/parcial silenciada, não
    participa. Com ``sum_partial_dissonances`` a rugosidade de cada par é
    dividida ao meio e somada aos acumuladores dos dois elementos; os
    acumuladores de todos os espectros somam o total devolvido.
    """

    def __init__(self, name: str, description: str = "", *,
                 x_star: float = MAX_DISSONANCE,
                 s1: float = CURVE_INTERP_1,
                 s2: float = CURVE_INTERP_2,
                 b1: float = CURVE_RATE_1,
                 b2: float = CURVE_RATE_2,
                 p1: float = CURVE_FIT_1,
                 p2: float = CURVE_FIT_2):
        super().__init__(name, description)
        self.x_star = float(x_star)
        self.s1 = float(s1)
        self.s2 = float(s2)
        self.b1 = float(b1)
        self.b2 = float(b2)
        self.p1 = float(p1)
        self.p2 = float(p2)

    def _curve(self, f1: float, f2: float) -> float:
        """p1*exp(b1*s*df) + p2*exp(b2*s*df), s = x*/(s1*min(f1,f2) + s2)."""
        s = self.x_star / (self.s1 * min(f1, f2) + self.s2)
        y = s * abs(f1 - f2)
        return self.p1 * math.exp(self.b1 * y) + self.p2 * math.exp(self.b2 * y)

    @abstractmethod
    def pure_tones_dissonance(self, f1: float, f2: float, a1: float, a2: float) -> float:
        """Rugosidade entre dois tons puros (frequências e amplitudes reais)."""

    def calculate_dissonance(self, spectra: Sequence[OvertoneSpectrum],
                             sum_partial_dissonances: bool = False) -> float:
        roughness = self.pure_tones_dissonance
        dissonance = 0.0
        n = len(spectra)

        # Fundamental contra fundamental
        for i in range(n):
            first = spectra[i]
            if not first.fundamental_is_active():
                continue
            for j in range(i + 1, n):
                second = spectra[j]
                if not second.fundamental_is_active():
                    continue
                d = roughness(first.fundamental_frequency, second.fundamental_frequency,
                              first.fundamental_amplitude, second.fundamental_amplitude)
                dissonance += d
                if sum_partial_dissonances:
                    first.add_fundamental_dissonance(d / 2)
                    second.add_fundamental_dissonance(d / 2)

        for i in range(n):
            first = spectra[i]
            if first.is_muted:
                continue
            for p in range(first.num_partials):
                if first.partial_is_muted(p):
                    continue
                f1 = first.get_real_frequency(p)
                a1 = first.get_real_amplitude(p)

                # Parcial contra todas as fundamentais
                for fund in spectra:
                    if not fund.fundamental_is_active():
                        continue
                    d = roughness(f1, fund.fundamental_frequency, a1, fund.fundamental_amplitude)
                    dissonance += d
                    if sum_partial_dissonances:
                        first.add_partial_dissonance(p, d / 2)
                        fund.add_fundamental_dissonance(d / 2)

                # Parcial contra as parciais seguintes; uma parcial isolada não gera rugosidade
                for j in range(i, n):
                    second = spectra[j]
                    if second.is_muted:
                        continue
                    start = p + 1 if j == i else 0
                    for q in range(start, second.num_partials):
                        if second.partial_is_muted(q):
                            continue
                        d = roughness(f1, second.get_real_frequency(q),
                                      a1, second.get_real_amplitude(q))
                        dissonance += d
                        if sum_partial_dissonances:
                            first.add_partial_dissonance(p, d / 2)
                            second.add_partial_dissonance(q, d / 2)

        return dissonance

# -----------------------------------------------------------------------------
# IMPLEMENTAÇÕES DOS MODELOS
# -----------------------------------------------------------------------------

class SetharesModel(SpectralInterferenceModel):
    """Sethares, "Tuning, Timbre, Spectrum, Scale" (2005).

        d(f1,f2,a1,a2) = min(a1,a2) * (p1*exp(b1*s*|f2-f1|) + p2*exp(b2*s*|f2-f1|))
        s = x* / (s1*min(f1,f2) + s2)
    """

    def __init__(self, **curve_params: float):
        super().__init__("Sethares", "Ajuste da curva de Plomp-Levelt (Sethares, 2005)", **curve_params)

    def pure_tones_dissonance(self, f1, f2, a1, a2) -> float:
        return min(a1, a2) * self._curve(f1, f2)


class VassilakisModel(SpectralInterferenceModel):
    """Vassilakis, "Perceptual and Physical Properties of Amplitude Fluctuation" (2001).

        d = (a1*a2)^0.1 * 0.5*(2*min(a1,a2)/(a1+a2))^3.11 * (p1*exp(b1*s*df) + p2*exp(b2*s*df))

    Dois tons de amplitude nula não flutuam: d = 0.
    """

    def __init__(self, **curve_params: float):
        super().__init__("Vassilakis", "Grau de flutuação de amplitude (Vassilakis, 2001)",
                         **curve_params)

    def pure_tones_dissonance(self, f1, f2, a1, a2) -> float:
        if a1 + a2 <= 0: return 0.0
        amp_level = (a1 * a2) ** 0.1
        amp_fluct = 0.5 * (2 * min(a1, a2) / (a1 + a2)) ** 3.11
        return amp_level * amp_fluct * self._curve(f1, f2)

# -----------------------------------------------------------------------------
# FÁBRICA
# -----------------------------------------------------------------------------

ModelFactory = Callable[[], DissonanceModel]

BUILTIN_MODELS: Mapping[str, ModelFactory] = {
    "sethares": SetharesModel,
    "vassilakis": VassilakisModel,
}


def get_dissonance_model(name: str,
                         registry: Optional[Mapping[str, ModelFactory]] = None) -> DissonanceModel:
    """Nova instância do modelo pelo nome, a partir de ``registry`` ou dos modelos incluídos."""
    factories: Dict[str, ModelFactory] = dict(registry if registry is not None else BUILTIN_MODELS)
    key = name.strip().lower()
    if key in factories:
        return factories[key]()
    raise ValueError(f"Modelo de dissonância '{name}' não encontrado.")


def list_available_models(registry: Optional[Mapping[str, ModelFactory]] = None) -> List[str]:
    return list(registry if registry is not None else BUILTIN_MODELS)


__all__ = [
    'DissonanceModel',
    'SpectralInterferenceModel',
    'SetharesModel',
    'VassilakisModel',
    'BUILTIN_MODELS',
    'get_dissonance_model',
    'list_available_models',
]
