HELP_MESSAGE = """\
Aqui estão algumas coisas que você pode fazer:
- Adicionar uma despesa: 'camisa 20'
- Adicionar uma receita: 'salário 1850'
- Definir o saldo: 'adicionar 1000 reais'
- Definir um limite de gastos: 'limite 500'
- Ver seu saldo: 'mostrar saldo'
- Ver últimas transações: 'listar transações'
- Apagar todas as transações: 'apagar tudo'
- Gerar um relatório: 'relatório do mês'
- Adicionar uma categoria: 'adicionar categoria transporte'
- Listar categorias: 'listar categorias'
- Ativar modo lembrete: 'ativar modo lembrete'
- Desativar modo lembrete: 'desativar modo lembrete'
Se precisar de mais ajuda, diga 'ajuda'."""

GREETINGS = ("olá", "ola", "oi", "bom dia", "boa tarde", "boa noite")

GREETING = "Olá! " + HELP_MESSAGE
NOT_UNDERSTOOD = "Não entendi sua mensagem. " + HELP_MESSAGE
MODEL_UNAVAILABLE = "Ops, algo deu errado. Tenta de novo!"
STORE_UNAVAILABLE = "Não consegui acessar seus dados agora. Tenta de novo daqui a pouco."

# Clarification
ASK_CLARIFICATION = (
    "Não tenho certeza se isso é uma receita ou uma despesa. "
    "Por favor, esclareça respondendo 'receita' ou 'despesa'."
)
REPEAT_CLARIFICATION = "Por favor, responda com 'receita' ou 'despesa'."
CLARIFICATION_TIMEOUT = (
    "Não recebi sua resposta a tempo, então descartei o lançamento {amount} - {description}."
)

# Category approval
SUGGEST_CATEGORY = 'Não achei categoria pra "{description}". Sugiro "{category}". Tá ok? (sim/não)'
CATEGORY_DECLINED = "Ok, não adicionei a categoria."
CATEGORY_DECLINED_DISCARDED = (
    "Ok, não adicionei a categoria, então descartei o lançamento {amount} - {description}."
)
CATEGORY_TIMEOUT = "Não recebi sua resposta a tempo, então não adicionei a categoria."

# Delete confirmation
ASK_DELETE_CONFIRMATION = (
    "Tem certeza que deseja apagar todas as suas transações? "
    "Isso não pode ser desfeito. Responda 'sim' para confirmar."
)
DELETED_ALL = "Todas as transações foram apagadas."
ACTION_CANCELLED = "Ação cancelada."
ACTION_CANCELLED_TIMEOUT = "Ação cancelada por timeout."

YES = "sim"
INCOME_ANSWER = "receita"
EXPENSE_ANSWER = "despesa"

# Command replies
EXPENSE_ADDED = "Beleza, adicionei {amount} em {category} - {description} (ID: {id})"
INCOME_ADDED = "Receita de {amount} em {category} - {description} (ID: {id}) adicionada!"
OVER_LIMIT = "Você passou do limite! 👎"
LIMIT_HEADROOM = "Ainda te sobra {remaining} pra gastar esse mês."
REMINDER_BALANCE = "Com base no seu saldo, você ainda pode gastar {balance}."
NEGATIVE_BALANCE = " Seu saldo está negativo em {deficit}."
BALANCE_SET = "Saldo ajustado pra {amount}."
LIMIT_SET = "Limite de gastos definido em {amount}."
SHOW_BALANCE = "Seu saldo atual é: {balance}"
NO_TRANSACTIONS = "Nenhuma transação por aqui."
LAST_TRANSACTIONS = "Últimas {count} transações:"
TRANSACTION_LINE = "- {date} | {kind}: {amount} em {category} - {description} (ID: {id})"
CATEGORY_EXISTS = "Essa categoria já existe."
CATEGORY_ADDED = "Categoria '{name}' adicionada!"
CATEGORIES = "Suas categorias são: {names}"
NO_CATEGORIES = "Você não tem nenhuma categoria ainda."
REMINDER_ON = (
    "Modo lembrete ativado. Vou te avisar quanto você ainda pode gastar após cada despesa."
)
REMINDER_OFF = "Modo lembrete desativado."
MONTHLY_SUMMARY = "Resumo mensal:\n{report}"

MONTH_NAMES = (
    "janeiro",
    "fevereiro",
    "março",
    "abril",
    "maio",
    "junho",
    "julho",
    "agosto",
    "setembro",
    "outubro",
    "novembro",
    "dezembro",
)


def money(amount) -> str:
    return f"{amount:.2f}"
