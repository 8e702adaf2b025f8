from .disease import Disease
from .vaccines import (
    HIVTest,
    InterventionScope,
    Strategies,
    Strategy,
    Vaccine,
    Vaccines,
)
