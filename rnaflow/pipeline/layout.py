"""Directory layout shared with the downstream statistical tools.

All paths hang off the context's path prefix:

  gene_data/ref_genome/<genome>.fa       reference sequence
  gene_data/ref_genes/<genome>.gtf       reference annotation
  gene_data/indices/<genome>_tran.*.ht2  hisat2 index
  gene_data/raw_fastq.gz/                input reads
  gene_data/raw_sam/ raw_bam/ raw_gtf/   per-sample alignments and assemblies
  gene_data/merged/                      merged assembly and comparison
  gene_data/ballgown/<sample>/           per-sample quantification
  gene_data/gene_abundance/<sample>/     per-sample gene abundance
  gene_data/reads_count_matrix/          raw count tables
  RNASeq_results/                        reports and COMMAND.txt
"""
import os

GENE_DATA = "gene_data"
RESULTS = "RNASeq_results"

def gene_data(context, *parts):
    return os.path.join(context.path_prefix, GENE_DATA, *parts)

def results(context, *parts):
    return os.path.join(context.path_prefix, RESULTS, *parts)

# ## Reference and index

def reference_fasta(context):
    return gene_data(context, "ref_genome", "%s.fa" % context.genome_name)

def reference_gtf(context):
    return gene_data(context, "ref_genes", "%s.gtf" % context.genome_name)

def index_dir(context):
    return gene_data(context, "indices")

def index_prefix(context):
    return os.path.join(index_dir(context), "%s_tran" % context.genome_name)

def splice_site_file(context):
    return os.path.join(index_dir(context), "%s.ss" % context.genome_name)

def exon_file(context):
    return os.path.join(index_dir(context), "%s.exon" % context.genome_name)

def phenodata_file(context):
    return gene_data(context, "phenodata.csv")

# ## Per-sample files

def fastq_dir(context):
    return gene_data(context, "raw_fastq.gz")

def sam_file(context, sample):
    return gene_data(context, "raw_sam", "%s.sam" % sample)

def bam_file(context, sample):
    return gene_data(context, "raw_bam", "%s.bam" % sample)

def sample_gtf(context, sample):
    return gene_data(context, "raw_gtf", "%s.gtf" % sample)

def ballgown_gtf(context, sample):
    return gene_data(context, "ballgown", sample, "%s.gtf" % sample)

def gene_abundance(context, sample):
    return gene_data(context, "gene_abundance", sample, "%s.tsv" % sample)

# ## Merged assembly

def merged_dir(context):
    return gene_data(context, "merged")

def merge_list(context):
    return os.path.join(merged_dir(context), "mergelist.txt")

def merged_gtf(context):
    return os.path.join(merged_dir(context), "stringtie_merged.gtf")

# ## Raw count tables

def count_dir(context):
    return gene_data(context, "reads_count_matrix")

def prepde_script(context):
    return os.path.join(count_dir(context), "prepDE.py")

def sample_list(context):
    return os.path.join(count_dir(context), "sample_lst.txt")

def gene_count_matrix(context):
    return os.path.join(count_dir(context), "gene_count_matrix.csv")

def transcript_count_matrix(context):
    return os.path.join(count_dir(context), "transcript_count_matrix.csv")

# ## Reports

def command_log(context):
    return results(context, "COMMAND.txt")

def alignment_report_dir(context):
    return results(context, "Alignment_Report")

def programs_file(context):
    return results(context, "programs.txt")
