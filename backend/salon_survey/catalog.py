"""Questions and option lists shown by the survey wizard."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

OTHER_OPTION = "Outro"

MULTI = "multi"
SINGLE = "single"
SCALE = "scale"
TEXT = "text"

DETAILS_TITLE = "Quase lá! Só mais uns detalhes."
DETAILS_SUBTITLE = "Para categorizar sua resposta."


@dataclass(frozen=True)
class Question:
    key: str
    step: int
    title: str
    kind: str
    subtitle: Optional[str] = None
    options: Tuple[str, ...] = field(default_factory=tuple)
    label: Optional[str] = None
    scale_labels: Tuple[str, ...] = field(default_factory=tuple)
    placeholder: Optional[str] = None
    required: bool = True

    @property
    def allows_other(self) -> bool:
        return self.kind == MULTI and OTHER_OPTION in self.options


QUESTIONS: List[Question] = [
    Question(
        key="q1",
        step=1,
        title="Hoje você agenda seus clientes como?",
        subtitle="Pode marcar mais de uma opção.",
        kind=MULTI,
        options=(
            "WhatsApp",
            "Agenda (papel)",
            "Google Agenda",
            "Instagram/DM",
            "Sistema/Software",
            OTHER_OPTION,
        ),
    ),
    Question(
        key="q2",
        step=2,
        title="Costuma dar problema de horário?",
        subtitle="O que mais acontece no dia a dia?",
        kind=MULTI,
        options=(
            "Atraso",
            "Falta",
            "Horário duplicado",
            "Cliente esquece",
            "Não tenho problema",
            OTHER_OPTION,
        ),
    ),
    Question(
        key="q3",
        step=3,
        title="O que você sempre precisa saber do cliente pra marcar?",
        subtitle="Informações essenciais.",
        kind=MULTI,
        options=(
            "Nome",
            "Telefone",
            "Serviço/procedimento",
            "Profissional",
            "Forma de pagamento",
            "Observações",
            OTHER_OPTION,
        ),
    ),
    Question(
        key="q4",
        step=4,
        title="Você perde muito tempo respondendo msg só pra falar horários?",
        subtitle="Escala de 1 a 5",
        kind=SCALE,
        options=("1", "2", "3", "4", "5"),
        scale_labels=("Nunca", "Demais"),
    ),
    Question(
        key="q5",
        step=5,
        title="Ajudaria se o cliente pudesse agendar sozinho?",
        subtitle="E receber lembrete automático.",
        kind=SINGLE,
        options=("Sim, muito!", "Não, prefiro eu marcar", "Talvez/Não sei"),
    ),
    Question(
        key="q6",
        step=6,
        title="Remarcar ou encaixar alguém é...?",
        subtitle="Como você sente isso na rotina.",
        kind=SINGLE,
        options=("Tranquilo", "Dá um pouco de trabalho", "Vira bagunça"),
    ),
    Question(
        key="q7",
        step=7,
        title="Além da agenda, o que facilitaria seu dia?",
        subtitle="Funcionalidades extras.",
        kind=MULTI,
        options=(
            "Pagamento/PIX",
            "Cadastro de clientes",
            "Histórico de serviços",
            "Controle financeiro",
            "Estoque/produtos",
            "Relatórios",
            OTHER_OPTION,
        ),
    ),
    Question(
        key="business_type",
        step=8,
        title=DETAILS_TITLE,
        subtitle=DETAILS_SUBTITLE,
        label="Seu Negócio",
        kind=SINGLE,
        options=("Salão de Beleza", "Barbearia", "Ambos", OTHER_OPTION),
    ),
    Question(
        key="city",
        step=8,
        title=DETAILS_TITLE,
        subtitle=DETAILS_SUBTITLE,
        label="Sua Cidade (Opcional)",
        kind=TEXT,
        placeholder="Ex: São Paulo - SP",
        required=False,
    ),
]

QUESTIONS_BY_KEY: Dict[str, Question] = {question.key: question for question in QUESTIONS}


def get_question(key: str) -> Question:
    try:
        return QUESTIONS_BY_KEY[key]
    except KeyError:
        raise KeyError(f"Unknown survey question {key!r}") from None
