import uuid
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from database.database import Base, get_db
from database.models import User, Student, School, SchoolClass, LessonPlan
from main import app

API = "/api"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    def _make_user(name="Ana Lima", role="TEACHER"):
        user = User(name=name, email=f"{uuid.uuid4().hex[:10]}@escola.com", role=role)
        db_session.add(user)
        db_session.commit()
        return str(user.id)
    return _make_user


@pytest.fixture
def make_student(db_session):
    def _make_student(name="João Pereira", grade="2º ano"):
        student = Student(name=name, grade=grade)
        db_session.add(student)
        db_session.commit()
        return str(student.id)
    return _make_student


@pytest.fixture
def school_refs(db_session):
    school = School(name="EMEF Monteiro Lobato")
    db_session.add(school)
    db_session.flush()
    school_class = SchoolClass(name="2º A", grade="2º ano", school_id=school.id)
    lesson_plan = LessonPlan(title="Leitura compartilhada")
    db_session.add_all([school_class, lesson_plan])
    db_session.commit()
    return {
        "schoolId": str(school.id),
        "classId": str(school_class.id),
        "lessonPlanId": str(lesson_plan.id)
    }


@pytest.fixture
def make_instrument(client):
    def _make_instrument(nome="Rastreio de Leitura", indicadores=("Fluência", "Compreensão", "Vocabulário")):
        response = client.post(f"{API}/screening-instruments", json={
            "nome": nome,
            "descricao": "Instrumento de rastreio de habilidades de leitura",
            "categoria": "ACADEMICO",
            "faixaEtaria": "6-8 anos",
            "tempoAplicacao": "15-20 minutos",
            "instrucoes": "Aplicar individualmente"
        })
        assert response.status_code == 201
        instrumento = response.json()

        indicator_ids = []
        for nome_indicador in indicadores:
            response = client.post(f"{API}/screening-instruments/indicators", json={
                "nome": nome_indicador,
                "descricao": f"Indicador de {nome_indicador.lower()}",
                "tipo": "ESCALA_LIKERT",
                "valorMinimo": 0,
                "valorMaximo": 5,
                "pontoCorte": 3,
                "instrumentoId": instrumento["id"]
            })
            assert response.status_code == 201
            indicator_ids.append(response.json()["id"])

        instrumento["indicator_ids"] = indicator_ids
        return instrumento
    return _make_instrument


@pytest.fixture
def make_screening(client, make_user, make_student):
    def _make_screening(instrumento_id, estudante_id=None, status=None):
        payload = {
            "dataAplicacao": "2025-04-02T10:00:00Z",
            "estudanteId": estudante_id or make_student(),
            "aplicadorId": make_user(name="Carla Mendes", role="PSYCHOLOGIST"),
            "instrumentoId": instrumento_id
        }
        if status:
            payload["status"] = status
        response = client.post(f"{API}/screenings", json=payload)
        assert response.status_code == 201
        return response.json()
    return _make_screening


@pytest.fixture
def make_intervention(client, make_student):
    def _make_intervention(estudante_id=None, **overrides):
        payload = {
            "startDate": "2025-04-07T08:00:00Z",
            "type": "Tutoria de leitura",
            "description": "Sessões de leitura guiada em pequeno grupo, nível 2",
            "studentId": estudante_id or make_student()
        }
        payload.update(overrides)
        response = client.post(f"{API}/interventions", json=payload)
        assert response.status_code == 201
        return response.json()
    return _make_intervention
