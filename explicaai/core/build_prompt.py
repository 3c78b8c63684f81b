"""Prompt Builder — pt-BR prompts for each tier of the generation ladder.

Invariants:
    - build_prompt() output always names every label in LABEL_VOCABULARY
    - strict=True output is a superset of the non-strict output for the same tier
    - Problem text is embedded verbatim (stripped), never reformatted
    - Pure: no IO, no randomness

Design Decisions:
    - One template per Complexity tier; only the guidance block differs
    - Answer-only prompt carries no label requirements (fallback tier)
"""

from explicaai.core.domain_types import Complexity

STEP_LABEL = "PASSO"
EXPLANATION_LABEL = "Explicação:"
CALCULATION_LABEL = "Cálculo:"
RESULT_LABEL = "Resultado:"
VERIFICATION_LABEL = "VERIFICAÇÃO:"
FINAL_ANSWER_LABEL = "RESPOSTA FINAL:"
ANSWER_ONLY_LABEL = "RESPOSTA:"

LABEL_VOCABULARY = (
    f"{STEP_LABEL} 1:",
    EXPLANATION_LABEL,
    CALCULATION_LABEL,
    RESULT_LABEL,
    VERIFICATION_LABEL,
    FINAL_ANSWER_LABEL,
)

_TIER_GUIDANCE = {
    Complexity.SIMPLE: (
        "Este é um problema direto. Resolva em 2 a 3 passos curtos, "
        "sem rodeios, mas sem pular nenhuma conta."
    ),
    Complexity.MEDIUM: (
        "Resolva em 3 a 5 passos. Em cada passo, diga qual propriedade ou "
        "regra está sendo usada e por quê."
    ),
    Complexity.COMPLEX: (
        "Este problema envolve conceitos avançados. Resolva em 4 a 8 passos. "
        "Antes de calcular, explique brevemente o conceito envolvido "
        "(por exemplo, a definição da função, a regra de derivação ou a "
        "identidade trigonométrica) e mostre cada transformação."
    ),
}

_FORMAT_BLOCK = """FORMATO OBRIGATÓRIO DA RESPOSTA:

PASSO 1: [título curto do passo]
Explicação: [o que será feito e por quê]
Cálculo: [a conta realizada neste passo]
Resultado: [o resultado obtido neste passo]

PASSO 2: [título curto do passo]
Explicação: [...]
Cálculo: [...]
Resultado: [...]

(continue numerando os passos até resolver o problema)

VERIFICAÇÃO:
Explicação: [como conferir a resposta, por exemplo substituindo valores]
Cálculo: [a conta da verificação]
Resultado: [confirmação]

RESPOSTA FINAL: [a resposta, em uma única linha]"""

_PROMPT_TEMPLATE = """Você é um professor de matemática muito didático e paciente. Um estudante do ensino médio precisa de ajuda com este problema:

"{problem}"

{guidance}

{format_block}

Use linguagem simples e encorajadora."""

_STRICT_BLOCK = """ATENÇÃO — RESTRIÇÕES DE FORMATO (a resposta anterior não seguiu o formato):
- Use SOMENTE estes rótulos, escritos exatamente assim: {labels}
- Cada passo começa em uma nova linha com "PASSO <número>:".
- Cada passo tem exatamente as três linhas "Explicação:", "Cálculo:" e "Resultado:".
- A última linha é "RESPOSTA FINAL:" seguida da resposta.
- NÃO use markdown, títulos, listas, tabelas ou qualquer outro formato.
- NÃO escreva nada antes de "PASSO 1:" nem depois da resposta final."""

_ANSWER_ONLY_TEMPLATE = """Resolva este problema de matemática e me dê APENAS a resposta final, sem explicações:

{problem}

RESPOSTA:"""

_SIMILAR_TEMPLATE = """Baseado neste problema de matemática: "{problem}"

Crie 3 exercícios similares que:
- Sejam do mesmo tipo e nível de dificuldade
- Usem números diferentes
- Mantenham a mesma estrutura de raciocínio
- Sejam adequados para praticar o mesmo conceito

FORMATO DA RESPOSTA:
**Exercício 1:**
[Problema similar com números diferentes]

**Exercício 2:**
[Outro problema similar]

**Exercício 3:**
[Terceiro problema similar]

**Dica de Estudo:**
[Uma dica sobre como abordar este tipo de problema]"""


def build_prompt(text: str, complexity: Complexity, strict: bool = False) -> str:
    """Render the step-by-step prompt for a tier; strict adds format constraints."""
    prompt = _PROMPT_TEMPLATE.format(
        problem=text.strip(),
        guidance=_TIER_GUIDANCE[complexity],
        format_block=_FORMAT_BLOCK,
    )
    if strict:
        labels = ", ".join(f'"{label}"' for label in LABEL_VOCABULARY)
        prompt = f"{prompt}\n\n{_STRICT_BLOCK.format(labels=labels)}"
    return prompt


def build_answer_only_prompt(text: str) -> str:
    """Fallback tier: ask for the bare final answer."""
    return _ANSWER_ONLY_TEMPLATE.format(problem=text.strip())


def build_similar_prompt(text: str) -> str:
    """Three practice exercises modeled on the given problem."""
    return _SIMILAR_TEMPLATE.format(problem=text.strip())
