import logging
from database.database import engine, SessionLocal
from database.models import Base, User, ScreeningInstrument, ScreeningIndicator
from models.enums import CategoriaInstrumento, TipoIndicador

logger = logging.getLogger(__name__)

INSTRUMENTOS_PADRAO = [
    {
        "nome": "Rastreio de Fluência Leitora",
        "descricao": "Avalia precisão e velocidade de leitura oral",
        "categoria": CategoriaInstrumento.ACADEMICO.value,
        "faixa_etaria": "6-8 anos",
        "tempo_aplicacao": "10-15 minutos",
        "instrucoes": "Aplicar individualmente, cronometrando um minuto de leitura por texto.",
        "indicadores": [
            ("Palavras lidas por minuto", "Total de palavras lidas corretamente em um minuto",
             TipoIndicador.NUMERICO.value, 0, 200, 60),
            ("Precisão da leitura", "Percentual de palavras lidas sem erro",
             TipoIndicador.PERCENTUAL.value, 0, 100, 90),
        ]
    },
    {
        "nome": "Escala de Comportamento em Sala",
        "descricao": "Observação estruturada de atenção e comportamento",
        "categoria": CategoriaInstrumento.COMPORTAMENTAL.value,
        "faixa_etaria": "6-12 anos",
        "tempo_aplicacao": "15-20 minutos",
        "instrucoes": "O professor responde cada item considerando as últimas quatro semanas.",
        "indicadores": [
            ("Permanece na tarefa", "Frequência com que o estudante conclui as atividades propostas",
             TipoIndicador.ESCALA_LIKERT.value, 1, 5, 3),
            ("Segue instruções", "Frequência com que o estudante segue instruções coletivas",
             TipoIndicador.ESCALA_LIKERT.value, 1, 5, 3),
        ]
    },
]


def init_database():
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()

    try:
        if db.query(User).count() == 0:
            db.add(User(name="Administrador", email="admin@innerview.com", role="ADMIN"))
            logger.info("Usuário administrador padrão criado")

        instrumentos_existentes = db.query(ScreeningInstrument).count()

        if instrumentos_existentes == 0:
            for dados in INSTRUMENTOS_PADRAO:
                dados = dict(dados)
                indicadores = dados.pop("indicadores")
                instrumento = ScreeningInstrument(**dados)
                for nome, descricao, tipo, minimo, maximo, corte in indicadores:
                    instrumento.indicadores.append(ScreeningIndicator(
                        nome=nome,
                        descricao=descricao,
                        tipo=tipo,
                        valor_minimo=minimo,
                        valor_maximo=maximo,
                        ponto_corte=corte
                    ))
                db.add(instrumento)

            logger.info("%d instrumentos de rastreio padrão criados", len(INSTRUMENTOS_PADRAO))
        else:
            logger.info("Banco de dados já contém %d instrumentos de rastreio", instrumentos_existentes)

        db.commit()

    except Exception:
        db.rollback()
        logger.exception("Erro ao inicializar banco de dados")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    logger.info("Inicializando banco de dados...")
    init_database()
    logger.info("Banco de dados inicializado!")
